"""Workflow runner: traverses a graph one node at a time."""

import copy
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from ..agents.catalog import AgentCatalog
from ..config import Settings, get_settings
from ..domain.enums import NodeKind, RunStatus
from ..domain.interfaces import ReasoningBackend
from ..domain.models import Message, RunFailure, WorkflowNode, WorkflowResult
from ..exceptions import (
    NoMatchingEdge,
    RunCancelled,
    StepLimitExceeded,
    WorkflowDefinitionError,
    WorkflowEngineError,
)
from ..execution.constants import EventTypes
from ..execution.events import EventManager
from ..execution.tool_loop import ToolInvocationLoop
from ..graph.expressions import render_template
from ..graph.graph import WorkflowGraph
from ..graph.loader import load_workflow
from ..logging import run_context
from ..resources.binder import ResourceBinder
from ..threads import ConversationThread
from ..tools.registry import ToolRegistry
from .context import ExecutionContext

logger = logging.getLogger(__name__)


class WorkflowRunner:
    """Executes workflow graphs.

    Each ``start`` call owns a fresh ExecutionContext; independent runs may
    proceed concurrently and share only the read-only registry, agents and
    graphs. Within a run exactly one node executes at a time.
    """

    def __init__(
        self,
        backend: ReasoningBackend,
        registry: ToolRegistry | None = None,
        binder: ResourceBinder | None = None,
        settings: Settings | None = None,
        *,
        loop: ToolInvocationLoop | None = None,
        max_steps: int | None = None,
        catalog: AgentCatalog | None = None,
    ):
        settings = settings or get_settings()
        if registry is None:
            registry = ToolRegistry(tool_timeout_seconds=settings.tool_loop.TOOL_TIMEOUT_SECONDS)
        self.registry = registry
        self.loop = loop or ToolInvocationLoop(backend, self.registry, binder, settings.tool_loop)
        self.max_steps = max_steps or settings.runner.MAX_STEPS
        self.catalog = catalog
        self._active: dict[str, ExecutionContext] = {}

    @property
    def active_runs(self) -> list[str]:
        return list(self._active)

    def cancel(self, run_id: str) -> bool:
        """Signal a run to stop; no further turns or nodes are scheduled.

        Returns:
            False if no active run has this id
        """
        context = self._active.get(run_id)
        if context is None:
            return False
        logger.info(f"Cancelling run {run_id}")
        context.cancel_event.set()
        return True

    async def start(
        self,
        workflow: WorkflowGraph | str | Path | Mapping[str, Any],
        initial_input: str | Mapping[str, Any] = "",
        run_id: str | None = None,
        variables: Mapping[str, Any] | None = None,
        on_event: Callable[[dict[str, Any]], None] | None = None,
    ) -> WorkflowResult:
        """Run a workflow from its entry node to a terminal node or a failure.

        Args:
            workflow: A graph, or a description to load (path, YAML text or mapping)
            initial_input: Text or mapping available to the run as ``input``
            run_id: Id for the run, generated when omitted
            variables: Overrides for declared workflow variables
            on_event: Called with every event as it is recorded

        Returns:
            WorkflowResult with status completed, failed or cancelled

        Raises:
            WorkflowDefinitionError: If the workflow is invalid; no node is executed
        """
        graph = (
            workflow
            if isinstance(workflow, WorkflowGraph)
            else load_workflow(workflow, registry=self.registry, catalog=self.catalog)
        )
        graph.ensure_valid(self.registry)

        unknown = set(variables or {}) - set(graph.variables)
        if unknown:
            raise WorkflowDefinitionError(
                f"unknown workflow variable(s) {sorted(unknown)}", workflow=graph.name
            )

        run_id = run_id or f"run_{uuid4().hex}"
        if run_id in self._active:
            raise ValueError(f"Run {run_id} is already active")

        context = ExecutionContext.create(
            run_id, graph.name, initial_input, {**graph.variables, **(variables or {})}
        )
        events = EventManager(run_id, graph.name)
        if on_event is not None:
            events.subscribe(on_event)

        self._active[run_id] = context
        try:
            with run_context(run_id=run_id):
                return await self._execute(graph, context, events)
        finally:
            self._active.pop(run_id, None)

    async def _execute(
        self, graph: WorkflowGraph, context: ExecutionContext, events: EventManager
    ) -> WorkflowResult:
        started_at = datetime.now(UTC)
        logger.info(f"Starting workflow {graph.name} at {graph.entry}")
        events.add_event(
            EventTypes.WORKFLOW_STARTED, {"entry": graph.entry, "input": context.inputs}
        )

        node_id = graph.entry
        try:
            while True:
                if context.cancelled:
                    raise RunCancelled(run_id=context.run_id, node_id=node_id)

                node = graph.node(node_id)
                context.current_node = node_id
                context.trail.append(node_id)

                with run_context(node_id=node_id):
                    if node.kind == NodeKind.TERMINAL:
                        output = self._terminal_output(node, context)
                        events.add_event(
                            EventTypes.NODE_COMPLETED,
                            {"node_id": node_id, "kind": node.kind.value, "output": output},
                        )
                        return self._result(
                            graph, context, events, RunStatus.COMPLETED, started_at,
                            final_output=output, terminal_node=node_id,
                        )

                    events.add_event(
                        EventTypes.NODE_STARTED, {"node_id": node_id, "kind": node.kind.value}
                    )
                    if node.kind == NodeKind.AGENT:
                        await self._run_agent_node(node, context, events)
                    next_id = self._select_edge(graph, node, context, events)

                context.steps += 1
                if context.steps > self.max_steps:
                    raise StepLimitExceeded(
                        self.max_steps, run_id=context.run_id, node_id=node_id
                    )
                node_id = next_id

        except WorkflowEngineError as e:
            e.with_context(run_id=context.run_id, node_id=context.current_node)
            cancelled = isinstance(e, RunCancelled)
            logger.error(f"Workflow {graph.name} {'cancelled' if cancelled else 'failed'}: {e}")
            return self._result(
                graph, context, events,
                RunStatus.CANCELLED if cancelled else RunStatus.FAILED,
                started_at,
                error=RunFailure.from_exception(e, node_id=context.current_node),
            )
        except Exception as e:
            logger.exception(f"Unexpected error in workflow {graph.name}")
            return self._result(
                graph, context, events, RunStatus.FAILED, started_at,
                error=RunFailure.from_exception(e, node_id=context.current_node),
            )

    async def _run_agent_node(
        self, node: WorkflowNode, context: ExecutionContext, events: EventManager
    ) -> None:
        agent = node.agent
        if agent is None:
            raise WorkflowDefinitionError(f"agent node '{node.id}' has no agent")

        if node.input:
            user_text = render_template(node.input, context.scope(node))
        elif context.last_output is not None:
            user_text = context.last_output
        else:
            user_text = context.input_text

        thread = ConversationThread()
        if agent.instructions:
            thread.append(Message.system(agent.instructions))
        thread.append(Message.user(user_text))

        outcome = await self.loop.run(
            agent,
            thread,
            run_id=context.run_id,
            node_id=node.id,
            cancel_event=context.cancel_event,
            events=events,
        )

        record: dict[str, Any] = {
            "output": outcome.final_text,
            "agent": agent.name,
            "turns": outcome.turns,
            "tool_calls": outcome.tool_calls,
            "citations": list(outcome.citations),
            "visits": context.trail.count(node.id),
            "status": "completed" if outcome.succeeded else "failed",
        }
        context.record(node.id, record)

        if not outcome.succeeded:
            error = outcome.error or WorkflowEngineError("Agent loop failed")
            record["error"] = error.kind
            events.add_event(
                EventTypes.NODE_FAILED,
                {"node_id": node.id, "error_kind": error.kind, "error": error.message},
            )
            raise error

        events.add_event(
            EventTypes.NODE_COMPLETED,
            {
                "node_id": node.id,
                "kind": node.kind.value,
                "output": outcome.final_text,
                "turns": outcome.turns,
                "tool_calls": outcome.tool_calls,
            },
        )

    def _select_edge(
        self,
        graph: WorkflowGraph,
        node: WorkflowNode,
        context: ExecutionContext,
        events: EventManager,
    ) -> str:
        """First edge, in declaration order, whose predicate holds."""
        scope = context.scope(node)
        for edge in graph.outgoing(node.id):
            predicate = graph.predicate(edge)
            if predicate is None or predicate.evaluate(scope):
                events.add_event(
                    EventTypes.EDGE_TAKEN,
                    {"source": edge.source, "target": edge.target, "when": edge.when},
                )
                logger.debug(f"Edge {edge.source} -> {edge.target} taken")
                return edge.target
        raise NoMatchingEdge(node.id, run_id=context.run_id)

    @staticmethod
    def _terminal_output(node: WorkflowNode, context: ExecutionContext) -> str | None:
        if node.output is not None:
            output = render_template(node.output, context.scope(node))
        else:
            output = context.last_output
        context.variables[node.id] = {"output": output, "status": "completed"}
        return output

    @staticmethod
    def _result(
        graph: WorkflowGraph,
        context: ExecutionContext,
        events: EventManager,
        status: RunStatus,
        started_at: datetime,
        final_output: str | None = None,
        terminal_node: str | None = None,
        error: RunFailure | None = None,
    ) -> WorkflowResult:
        event_type = {
            RunStatus.COMPLETED: EventTypes.WORKFLOW_COMPLETED,
            RunStatus.FAILED: EventTypes.WORKFLOW_FAILED,
            RunStatus.CANCELLED: EventTypes.WORKFLOW_CANCELLED,
        }[status]
        events.add_event(
            event_type,
            {
                "status": status.value,
                "terminal_node": terminal_node,
                "steps": context.steps,
                "error": error.model_dump() if error else None,
            },
        )
        if status == RunStatus.COMPLETED:
            logger.info(
                f"Workflow {graph.name} completed at {terminal_node} after {context.steps} steps"
            )

        return WorkflowResult(
            run_id=context.run_id,
            workflow=graph.name,
            status=status,
            final_output=final_output,
            terminal_node=terminal_node,
            variables=copy.deepcopy(context.variables),
            trail=list(context.trail),
            steps=context.steps,
            events=events.get_events(),
            error=error,
            started_at=started_at,
            finished_at=datetime.now(UTC),
        )
