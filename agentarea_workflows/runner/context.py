"""Per-run execution state."""

import asyncio
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..domain.models import WorkflowNode


@dataclass
class ExecutionContext:
    """Everything one run accumulates while traversing a graph.

    Owned by exactly one ``WorkflowRunner.start`` invocation and never
    shared between runs.
    """

    run_id: str
    workflow: str
    inputs: dict[str, Any]
    workflow_variables: dict[str, Any] = field(default_factory=dict)
    variables: dict[str, dict[str, Any]] = field(default_factory=dict)
    current_node: str | None = None
    steps: int = 0
    trail: list[str] = field(default_factory=list)
    last_output: str | None = None
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    @classmethod
    def create(
        cls,
        run_id: str,
        workflow: str,
        initial_input: str | Mapping[str, Any],
        workflow_variables: Mapping[str, Any] | None = None,
    ) -> "ExecutionContext":
        if isinstance(initial_input, Mapping):
            inputs = dict(initial_input)
        else:
            inputs = {"text": initial_input}
        return cls(
            run_id=run_id,
            workflow=workflow,
            inputs=inputs,
            workflow_variables=dict(workflow_variables or {}),
        )

    @property
    def input_text(self) -> str:
        """The initial input as the text of a user turn."""
        text = self.inputs.get("text")
        if isinstance(text, str) and len(self.inputs) == 1:
            return text
        return json.dumps(self.inputs, default=str)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def scope(self, node: WorkflowNode) -> dict[str, Any]:
        """Names visible to predicates and templates attached to ``node``."""
        return {
            **self.workflow_variables,
            **node.variables,
            "input": self.inputs,
            **self.variables,
        }

    def record(self, node_id: str, record: dict[str, Any]) -> None:
        """Store a node's output record under its id."""
        self.variables[node_id] = record
        output = record.get("output")
        if isinstance(output, str):
            self.last_output = output
