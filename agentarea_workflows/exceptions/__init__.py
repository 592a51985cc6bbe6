"""Exception classes for the workflow engine.

Every failure kind maps to one class with a stable ``kind`` string so that a
failed run can report exactly what went wrong.
"""

from .base import WorkflowEngineError
from .execution import (
    BackendCommunicationError,
    BackendTimeout,
    InvalidTransition,
    ResourceCreationError,
    ResourceTimeout,
    ToolExecutionError,
    ToolTimeout,
    TurnLimitExceeded,
    UnknownTool,
)
from .workflow import (
    AgentNotFound,
    ExpressionError,
    NoMatchingEdge,
    RunCancelled,
    StepLimitExceeded,
    WorkflowDefinitionError,
)

RECOVERABLE_TOOL_ERRORS = (UnknownTool, ToolExecutionError, ToolTimeout)

__all__ = [
    "RECOVERABLE_TOOL_ERRORS",
    "AgentNotFound",
    "BackendCommunicationError",
    "BackendTimeout",
    "ExpressionError",
    "InvalidTransition",
    "NoMatchingEdge",
    "ResourceCreationError",
    "ResourceTimeout",
    "RunCancelled",
    "StepLimitExceeded",
    "ToolExecutionError",
    "ToolTimeout",
    "TurnLimitExceeded",
    "UnknownTool",
    "WorkflowDefinitionError",
    "WorkflowEngineError",
]
