"""Abstract boundaries the engine talks to.

The engine never knows which model provider, search service or document
store sits behind these interfaces. Implementations are plugged in by the
caller: the LiteLLM backend, the built-in tool handlers and the in-memory
resource provider are shipped, anything else can be added.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from .enums import ResourceState, ToolCapability
from .models import AgentDefinition, BackendResponse, Message, ResourceHandle, ToolResult

if TYPE_CHECKING:
    from ..tools.configs import ToolConfig


class ReasoningBackend(ABC):
    """Backend call boundary: thread snapshot + agent in, answer or tool calls out."""

    @abstractmethod
    async def complete(
        self,
        messages: tuple[Message, ...],
        agent: AgentDefinition,
        tools: list[dict[str, Any]],
    ) -> BackendResponse:
        """Ask the backend for the next assistant turn.

        Args:
            messages: Immutable snapshot of the conversation so far
            agent: Agent whose instructions and model drive the turn
            tools: OpenAI-style function definitions the agent may call

        Returns:
            BackendResponse with either final text or tool call requests

        Raises:
            BackendCommunicationError: If the backend cannot be reached
        """


@dataclass
class ToolContext:
    """Run-scoped information handed to every tool invocation."""

    run_id: str
    node_id: str
    agent_name: str
    resources: dict[str, ResourceHandle] = field(default_factory=dict)
    cancel_event: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


class ToolHandler(ABC):
    """Execution handler behind one tool capability."""

    capability: ClassVar[ToolCapability]

    @abstractmethod
    async def execute(
        self, config: "ToolConfig", arguments: dict[str, Any], context: ToolContext
    ) -> ToolResult:
        """Run the tool once with the given arguments."""

    def parameters(self, config: "ToolConfig") -> dict[str, Any]:
        """JSON schema of the arguments the tool accepts."""
        return {"type": "object", "properties": {}, "required": []}


class ResourceProvider(ABC):
    """External service that materializes long-lived resources asynchronously."""

    @abstractmethod
    async def create(self, source_ref: str) -> str:
        """Submit a creation request and return the provider's resource id.

        Raises:
            ResourceCreationError: If the provider rejects the request
        """

    @abstractmethod
    async def status(self, resource_id: str) -> ResourceState:
        """Return the current readiness of a previously created resource."""
