"""One-call construction and execution of a workflow description."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..agents.catalog import AgentCatalog
from ..config import Settings
from ..domain.interfaces import ReasoningBackend
from ..domain.models import WorkflowResult
from ..graph.graph import WorkflowGraph
from ..graph.loader import load_workflow
from ..resources.binder import ResourceBinder
from ..tools.registry import ToolRegistry
from .runner import WorkflowRunner


class WorkflowFactory:
    """Loads a description once and runs it as often as needed.

    The description is validated on construction, so a broken workflow
    fails before any run starts.
    """

    def __init__(
        self,
        source: str | Path | Mapping[str, Any],
        backend: ReasoningBackend,
        registry: ToolRegistry | None = None,
        *,
        binder: ResourceBinder | None = None,
        catalog: AgentCatalog | None = None,
        settings: Settings | None = None,
    ):
        self.registry = registry if registry is not None else ToolRegistry()
        self.graph = load_workflow(source, registry=self.registry, catalog=catalog)
        self.runner = WorkflowRunner(backend, self.registry, binder, settings, catalog=catalog)

    def create_workflow(self) -> WorkflowGraph:
        return self.graph

    async def execute(
        self, initial_input: str | Mapping[str, Any] = "", **kwargs: Any
    ) -> WorkflowResult:
        """Start a run of the loaded workflow; see ``WorkflowRunner.start``."""
        return await self.runner.start(self.graph, initial_input, **kwargs)
