"""Exceptions raised while an agent node is executing.

Tool errors (``UnknownTool``, ``ToolExecutionError``, ``ToolTimeout``) are
recoverable: the tool invocation loop feeds them back to the reasoning backend
as tool messages. Everything else in this module is fatal to the node.
"""

from .base import WorkflowEngineError


class UnknownTool(WorkflowEngineError):  # noqa: N818
    """Raised when a tool id cannot be resolved in the registry."""

    kind = "unknown_tool"

    def __init__(self, tool_id: str):
        self.tool_id = tool_id
        super().__init__(f"Unknown tool: {tool_id}")


class ToolExecutionError(WorkflowEngineError):
    """Raised when a tool handler fails."""

    kind = "tool_execution"

    def __init__(self, tool_id: str, cause: BaseException | str):
        self.tool_id = tool_id
        self.cause = cause
        super().__init__(f"Tool '{tool_id}' failed: {cause}")


class ToolTimeout(WorkflowEngineError):  # noqa: N818
    """Raised when a tool handler exceeds its execution timeout."""

    kind = "tool_timeout"

    def __init__(self, tool_id: str, timeout_seconds: float):
        self.tool_id = tool_id
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Tool '{tool_id}' timed out after {timeout_seconds:g}s")


class ResourceCreationError(WorkflowEngineError):
    """Raised when a provider rejects or fails to create an external resource."""

    kind = "resource_creation"

    def __init__(self, source_ref: str, reason: str, retryable: bool = False):
        self.source_ref = source_ref
        self.reason = reason
        self.retryable = retryable
        super().__init__(f"Failed to create resource for '{source_ref}': {reason}")


class ResourceTimeout(WorkflowEngineError):  # noqa: N818
    """Raised when a resource does not become ready within the polling bound."""

    kind = "resource_timeout"

    def __init__(self, source_ref: str, waited_seconds: float):
        self.source_ref = source_ref
        self.waited_seconds = waited_seconds
        super().__init__(
            f"Resource for '{source_ref}' not ready after {waited_seconds:g}s"
        )


class BackendCommunicationError(WorkflowEngineError):
    """Raised when the reasoning backend cannot be reached or rejects a call.

    ``retryable`` marks transient failures (connection errors, rate limits,
    5xx responses). Non-retryable failures such as authentication problems
    fail the node on the first attempt.
    """

    kind = "backend_communication"

    def __init__(self, message: str, retryable: bool = True, attempts: int | None = None):
        self.retryable = retryable
        self.attempts = attempts
        super().__init__(message)


class BackendTimeout(WorkflowEngineError):  # noqa: N818
    """Raised when the reasoning backend does not answer within its timeout."""

    kind = "backend_timeout"

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Backend did not respond within {timeout_seconds:g}s")


class TurnLimitExceeded(WorkflowEngineError):  # noqa: N818
    """Raised when a tool invocation loop exceeds its maximum number of turns."""

    kind = "turn_limit_exceeded"

    def __init__(self, max_turns: int):
        self.max_turns = max_turns
        super().__init__(f"Tool invocation loop exceeded {max_turns} turns")


class InvalidTransition(WorkflowEngineError):  # noqa: N818
    """Raised when a conversation thread append violates its status contract."""

    kind = "invalid_transition"
