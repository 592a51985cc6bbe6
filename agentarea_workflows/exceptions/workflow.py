"""Workflow definition and traversal exceptions."""

from .base import WorkflowEngineError


class WorkflowDefinitionError(WorkflowEngineError):
    """Raised when a workflow description is malformed or fails validation.

    Definition errors are detected before any node executes and are never
    retried. All problems found by a validation pass are collected in
    ``errors`` so that a broken description can be fixed in one go.
    """

    kind = "workflow_definition"

    def __init__(self, errors: list[str] | str, workflow: str | None = None):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        self.workflow = workflow
        prefix = f"Invalid workflow '{workflow}'" if workflow else "Invalid workflow"
        super().__init__(f"{prefix}: " + "; ".join(self.errors))


class ExpressionError(WorkflowEngineError):
    """Raised when an edge predicate cannot be parsed or evaluated."""

    kind = "expression"

    def __init__(self, expression: str, reason: str, position: int | None = None):
        self.expression = expression
        self.reason = reason
        self.position = position
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"Invalid expression '{expression}'{where}: {reason}")


class NoMatchingEdge(WorkflowEngineError):  # noqa: N818
    """Raised when no outgoing edge of a node evaluates true at runtime."""

    kind = "no_matching_edge"

    def __init__(self, node_id: str, run_id: str | None = None):
        super().__init__(
            f"No outgoing edge of node '{node_id}' matched", run_id=run_id, node_id=node_id
        )


class StepLimitExceeded(WorkflowEngineError):  # noqa: N818
    """Raised when a run performs more transitions than allowed."""

    kind = "step_limit_exceeded"

    def __init__(self, max_steps: int, run_id: str | None = None, node_id: str | None = None):
        self.max_steps = max_steps
        super().__init__(
            f"Step limit of {max_steps} exceeded", run_id=run_id, node_id=node_id
        )


class RunCancelled(WorkflowEngineError):  # noqa: N818
    """Raised when a run observes its cancellation signal."""

    kind = "cancelled"

    def __init__(self, run_id: str | None = None, node_id: str | None = None):
        super().__init__("Run was cancelled", run_id=run_id, node_id=node_id)


class AgentNotFound(WorkflowEngineError):  # noqa: N818
    """Raised when an agent reference cannot be resolved."""

    kind = "agent_not_found"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Agent '{reference}' not found")
