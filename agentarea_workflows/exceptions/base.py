"""Base exception for the workflow engine."""

from typing import ClassVar


class WorkflowEngineError(Exception):
    """Base exception for all workflow engine errors.

    Carries the run and node identifiers where the error occurred so that a
    failed run can always be traced back to the node that broke it.
    """

    kind: ClassVar[str] = "engine_error"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        run_id: str | None = None,
        node_id: str | None = None,
    ):
        """Initialize engine error.

        Args:
            message: Error message
            run_id: ID of the workflow run where the error occurred
            node_id: ID of the workflow node that was active
        """
        super().__init__(message)
        self.message = message
        self.run_id = run_id
        self.node_id = node_id

    def with_context(
        self, run_id: str | None = None, node_id: str | None = None
    ) -> "WorkflowEngineError":
        """Attach run/node context if it is not already set."""
        if self.run_id is None:
            self.run_id = run_id
        if self.node_id is None:
            self.node_id = node_id
        return self

    def __str__(self) -> str:
        """Return string representation with context."""
        context_parts = []
        if self.run_id:
            context_parts.append(f"run_id={self.run_id}")
        if self.node_id:
            context_parts.append(f"node_id={self.node_id}")

        if context_parts:
            context = " (" + ", ".join(context_parts) + ")"
            return f"{self.message}{context}"
        return self.message
