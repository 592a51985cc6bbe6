"""Constants for workflow and tool loop execution."""

from typing import Final

# Execution limits
DEFAULT_MAX_TURNS: Final[int] = 25
DEFAULT_MAX_STEPS: Final[int] = 50

# Timeout configurations (seconds)
DEFAULT_BACKEND_TIMEOUT: Final[float] = 120.0
DEFAULT_TOOL_TIMEOUT: Final[float] = 180.0

# Retry policies
DEFAULT_RETRY_ATTEMPTS: Final[int] = 3


# Event types
class EventTypes:
    """Workflow event type constants."""

    WORKFLOW_STARTED: Final[str] = "WorkflowStarted"
    WORKFLOW_COMPLETED: Final[str] = "WorkflowCompleted"
    WORKFLOW_FAILED: Final[str] = "WorkflowFailed"
    WORKFLOW_CANCELLED: Final[str] = "WorkflowCancelled"

    NODE_STARTED: Final[str] = "NodeStarted"
    NODE_COMPLETED: Final[str] = "NodeCompleted"
    NODE_FAILED: Final[str] = "NodeFailed"
    EDGE_TAKEN: Final[str] = "EdgeTaken"

    RESOURCE_BOUND: Final[str] = "ResourceBound"

    LLM_CALL_STARTED: Final[str] = "LLMCallStarted"
    LLM_CALL_COMPLETED: Final[str] = "LLMCallCompleted"
    LLM_CALL_FAILED: Final[str] = "LLMCallFailed"

    TOOL_CALL_STARTED: Final[str] = "ToolCallStarted"
    TOOL_CALL_COMPLETED: Final[str] = "ToolCallCompleted"
    TOOL_CALL_FAILED: Final[str] = "ToolCallFailed"
