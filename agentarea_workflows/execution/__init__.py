"""Execution primitives: events, retries and the tool invocation loop.

The loop itself lives in ``agentarea_workflows.execution.tool_loop``.
"""

from .constants import DEFAULT_MAX_STEPS, DEFAULT_MAX_TURNS, EventTypes
from .events import EventManager
from .retry import RetryPolicy, call_with_retry

__all__ = [
    "DEFAULT_MAX_STEPS",
    "DEFAULT_MAX_TURNS",
    "EventManager",
    "EventTypes",
    "RetryPolicy",
    "call_with_retry",
]
