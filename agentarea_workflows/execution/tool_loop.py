"""Tool invocation loop: drives one agent's conversation to a final answer.

States::

    awaiting_backend -> interpreting -> executing_tools -> awaiting_backend
                                     -> done
                                     -> failed

A single tool failure is fed back to the backend as an error tool message.
The loop only fails when the backend is unreachable beyond the retry budget,
the backend times out, a bound resource cannot be materialized, the turn
limit is hit, or the run is cancelled.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from ..config import ToolLoopSettings
from ..domain.enums import LoopState, ThreadStatus
from ..domain.interfaces import ReasoningBackend, ToolContext
from ..domain.models import (
    AgentDefinition,
    BackendResponse,
    Message,
    ResourceHandle,
    ToolCallRequestPart,
)
from ..exceptions import (
    RECOVERABLE_TOOL_ERRORS,
    BackendCommunicationError,
    BackendTimeout,
    ResourceCreationError,
    RunCancelled,
    TurnLimitExceeded,
    UnknownTool,
    WorkflowEngineError,
)
from ..resources.binder import ResourceBinder
from ..threads import ConversationThread
from ..tools.configs import FileSearchConfig
from ..tools.registry import ToolRegistry
from .constants import EventTypes
from .events import EventManager
from .retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)


@dataclass
class LoopOutcome:
    """Result of one tool invocation loop."""

    state: LoopState
    final_text: str | None = None
    turns: int = 0
    tool_calls: int = 0
    citations: list[str] = field(default_factory=list)
    error: WorkflowEngineError | None = None

    @property
    def succeeded(self) -> bool:
        return self.state == LoopState.DONE


class ToolInvocationLoop:
    """Runs the backend/tool conversation for a single agent.

    The loop is stateless between runs and may be shared by concurrent
    workflow runs; all per-run state lives in the thread and the outcome.
    """

    def __init__(
        self,
        backend: ReasoningBackend,
        registry: ToolRegistry,
        binder: ResourceBinder | None = None,
        settings: ToolLoopSettings | None = None,
        *,
        max_turns: int | None = None,
        backend_timeout_seconds: float | None = None,
        tool_timeout_seconds: float | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        settings = settings or ToolLoopSettings()
        self.backend = backend
        self.registry = registry
        self.binder = binder
        self.max_turns = max_turns or settings.MAX_TURNS
        self.backend_timeout_seconds = backend_timeout_seconds or settings.BACKEND_TIMEOUT_SECONDS
        self.tool_timeout_seconds = tool_timeout_seconds or settings.TOOL_TIMEOUT_SECONDS
        self.retry_policy = retry_policy or RetryPolicy(
            initial_interval=settings.BACKEND_RETRY_INITIAL_INTERVAL_SECONDS,
            backoff_coefficient=settings.BACKEND_RETRY_BACKOFF_COEFFICIENT,
            maximum_interval=settings.BACKEND_RETRY_MAX_INTERVAL_SECONDS,
            maximum_attempts=settings.BACKEND_RETRY_ATTEMPTS,
        )

    async def run(
        self,
        agent: AgentDefinition,
        thread: ConversationThread,
        *,
        run_id: str = "adhoc",
        node_id: str = "adhoc",
        cancel_event: asyncio.Event | None = None,
        events: EventManager | None = None,
    ) -> LoopOutcome:
        """Drive ``thread`` until the agent produces a final answer or fails.

        Args:
            agent: Agent whose instructions, model and tools are used
            thread: Thread seeded with the conversation so far; owned by this call
            run_id: Id of the enclosing workflow run
            node_id: Id of the workflow node being executed
            cancel_event: Run-scoped cancellation signal
            events: Event manager receiving LLM and tool call events

        Returns:
            LoopOutcome in state ``done`` or ``failed``
        """
        outcome = LoopOutcome(state=LoopState.AWAITING_BACKEND)
        try:
            resources = await self._bind_resources(agent)
            for handle in resources.values():
                self._emit(
                    events,
                    EventTypes.RESOURCE_BOUND,
                    {"node_id": node_id, "source_ref": handle.source_ref, "resource_id": handle.id},
                )

            context = ToolContext(
                run_id=run_id,
                node_id=node_id,
                agent_name=agent.name,
                resources=resources,
                cancel_event=cancel_event,
            )
            tools = self._tool_definitions(agent)

            while True:
                if cancel_event is not None and cancel_event.is_set():
                    raise RunCancelled(run_id=run_id, node_id=node_id)
                if outcome.turns >= self.max_turns:
                    raise TurnLimitExceeded(self.max_turns)

                outcome.turns += 1
                outcome.state = LoopState.AWAITING_BACKEND
                response = await self._call_backend(thread, agent, tools, outcome.turns, events)

                outcome.state = LoopState.INTERPRETING
                thread.append(Message.assistant(response.text, response.tool_calls))

                if not response.tool_calls:
                    thread.complete()
                    outcome.state = LoopState.DONE
                    outcome.final_text = response.text
                    logger.info(
                        f"Agent {agent.name} finished after {outcome.turns} turn(s), "
                        f"{outcome.tool_calls} tool call(s)"
                    )
                    return outcome

                outcome.state = LoopState.EXECUTING_TOOLS
                results = await asyncio.gather(
                    *(
                        self._run_tool_call(call, agent, context, events)
                        for call in response.tool_calls
                    )
                )
                for message, citations in results:
                    thread.append(message)
                    outcome.citations.extend(c for c in citations if c not in outcome.citations)
                outcome.tool_calls += len(results)

        except WorkflowEngineError as e:
            e.with_context(run_id=run_id, node_id=node_id)
            logger.error(f"Agent {agent.name} failed: {e}")
            if thread.status != ThreadStatus.COMPLETED:
                thread.fail(e.message)
            outcome.state = LoopState.FAILED
            outcome.error = e
            return outcome

    async def _bind_resources(self, agent: AgentDefinition) -> dict[str, ResourceHandle]:
        resources: dict[str, ResourceHandle] = {}
        for tool_id in agent.tools:
            if tool_id not in self.registry:
                continue
            config = self.registry.resolve(tool_id).config
            if not isinstance(config, FileSearchConfig) or config.source_ref in resources:
                continue
            if self.binder is None:
                raise ResourceCreationError(config.source_ref, "no resource binder configured")
            resources[config.source_ref] = await self.binder.materialize(config.source_ref)
        return resources

    def _tool_definitions(self, agent: AgentDefinition) -> list[dict[str, Any]]:
        known = [tool_id for tool_id in agent.tools if tool_id in self.registry]
        missing = set(agent.tools) - set(known)
        if missing:
            logger.warning(f"Agent {agent.name} references unregistered tools: {sorted(missing)}")
        return self.registry.definitions(known)

    async def _call_backend(
        self,
        thread: ConversationThread,
        agent: AgentDefinition,
        tools: list[dict[str, Any]],
        turn: int,
        events: EventManager | None,
    ) -> BackendResponse:
        snapshot = thread.snapshot()

        async def attempt() -> BackendResponse:
            self._emit(events, EventTypes.LLM_CALL_STARTED, {"agent": agent.name, "turn": turn})
            try:
                return await asyncio.wait_for(
                    self.backend.complete(snapshot, agent, tools),
                    timeout=self.backend_timeout_seconds,
                )
            except TimeoutError:
                raise BackendTimeout(self.backend_timeout_seconds) from None
            except WorkflowEngineError:
                raise
            except Exception as e:
                raise BackendCommunicationError(
                    f"Backend call failed ({type(e).__name__}): {e}",
                    retryable=isinstance(e, OSError),
                ) from e

        def on_retry(attempt_no: int, error: BaseException) -> None:
            self._emit(
                events,
                EventTypes.LLM_CALL_FAILED,
                {
                    "agent": agent.name,
                    "turn": turn,
                    "attempt": attempt_no,
                    "error": str(error),
                    "will_retry": True,
                },
            )

        try:
            response = await call_with_retry(
                attempt,
                self.retry_policy,
                description=f"Backend call for agent {agent.name}",
                on_retry=on_retry,
            )
        except WorkflowEngineError as e:
            self._emit(
                events,
                EventTypes.LLM_CALL_FAILED,
                {"agent": agent.name, "turn": turn, "error": str(e), "will_retry": False},
            )
            raise

        self._emit(
            events,
            EventTypes.LLM_CALL_COMPLETED,
            {
                "agent": agent.name,
                "turn": turn,
                "tool_calls": [call.tool_id for call in response.tool_calls],
                "usage": response.usage,
                "cost": response.cost,
            },
        )
        return response

    async def _run_tool_call(
        self,
        call: ToolCallRequestPart,
        agent: AgentDefinition,
        context: ToolContext,
        events: EventManager | None,
    ) -> tuple[Message, list[str]]:
        self._emit(
            events,
            EventTypes.TOOL_CALL_STARTED,
            {"call_id": call.call_id, "tool": call.tool_id, "arguments": call.arguments},
        )
        try:
            # Agents may only call the tools they were defined with
            if call.tool_id not in agent.tools:
                raise UnknownTool(call.tool_id)
            descriptor = self.registry.resolve(call.tool_id)
            result = await self.registry.execute(
                descriptor, call.arguments, context, timeout_seconds=self.tool_timeout_seconds
            )
        except RECOVERABLE_TOOL_ERRORS as e:
            self._emit(
                events,
                EventTypes.TOOL_CALL_FAILED,
                {
                    "call_id": call.call_id,
                    "tool": call.tool_id,
                    "error_kind": e.kind,
                    "error": e.message,
                },
            )
            return Message.tool_result(call.call_id, call.tool_id, e.message, is_error=True), []

        self._emit(
            events,
            EventTypes.TOOL_CALL_COMPLETED,
            {"call_id": call.call_id, "tool": call.tool_id, "citations": result.citations},
        )
        return Message.tool_result(call.call_id, call.tool_id, result.content), result.citations

    @staticmethod
    def _emit(events: EventManager | None, event_type: str, data: dict[str, Any]) -> None:
        if events is not None:
            events.add_event(event_type, data)
