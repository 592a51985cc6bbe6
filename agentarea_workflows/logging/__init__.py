"""Logging setup and run context for the workflow engine."""

from .config import RunContextFormatter, setup_logging
from .context import current_node_id, current_run_id, run_context
from .filters import RunContextFilter

__all__ = [
    "RunContextFilter",
    "RunContextFormatter",
    "current_node_id",
    "current_run_id",
    "run_context",
    "setup_logging",
]
