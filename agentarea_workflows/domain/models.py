"""Domain models for agents, conversations, tools and workflow runs."""

from datetime import UTC, datetime
from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import WorkflowEngineError
from .enums import (
    ContentPartType,
    MessageRole,
    NodeKind,
    ResourceKind,
    ResourceState,
    RunStatus,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# === Agents ===


class AgentDefinition(BaseModel):
    """A bound pairing of instructions, a backend model and an allowed tool set."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=255)
    instructions: str = ""
    model: str | None = None
    tools: tuple[str, ...] = ()
    description: str = ""
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)
    version: int | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate agent name."""
        if not v.strip():
            raise ValueError("Agent name cannot be empty")
        return v.strip()

    @field_validator("tools")
    @classmethod
    def validate_tools(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Keep tool ids ordered and unique."""
        seen: dict[str, None] = {}
        for tool_id in v:
            seen.setdefault(tool_id, None)
        return tuple(seen)

    def same_definition(self, other: "AgentDefinition") -> bool:
        """Compare two definitions ignoring the catalog version."""
        return self.model_dump(exclude={"version"}) == other.model_dump(exclude={"version"})


# === Messages ===


class TextPart(BaseModel):
    """Plain text content."""

    model_config = ConfigDict(frozen=True)

    type: Literal[ContentPartType.TEXT] = ContentPartType.TEXT
    text: str


class BinaryPart(BaseModel):
    """Binary content such as an image, tagged with its media type."""

    model_config = ConfigDict(frozen=True)

    type: Literal[ContentPartType.BINARY] = ContentPartType.BINARY
    media_type: str
    data: bytes


class ToolCallRequestPart(BaseModel):
    """A request from the reasoning backend to invoke a tool."""

    model_config = ConfigDict(frozen=True)

    type: Literal[ContentPartType.TOOL_CALL_REQUEST] = ContentPartType.TOOL_CALL_REQUEST
    call_id: str = Field(default_factory=lambda: f"call_{uuid4().hex[:12]}")
    tool_id: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolCallResultPart(BaseModel):
    """The result of a tool call, referencing the originating request."""

    model_config = ConfigDict(frozen=True)

    type: Literal[ContentPartType.TOOL_CALL_RESULT] = ContentPartType.TOOL_CALL_RESULT
    call_id: str
    tool_id: str
    content: str = ""
    is_error: bool = False


ContentPart = Annotated[
    TextPart | BinaryPart | ToolCallRequestPart | ToolCallResultPart,
    Field(discriminator="type"),
]


class Message(BaseModel):
    """A single message in a conversation thread."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"msg_{uuid4().hex}")
    role: MessageRole
    parts: tuple[ContentPart, ...] = ()
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def validate_parts_for_role(self) -> "Message":
        """Tool call requests belong to assistants, results to tool messages."""
        for part in self.parts:
            if isinstance(part, ToolCallRequestPart) and self.role != MessageRole.ASSISTANT:
                raise ValueError("Only assistant messages can carry tool call requests")
            if isinstance(part, ToolCallResultPart) and self.role != MessageRole.TOOL:
                raise ValueError("Only tool messages can carry tool call results")
        if self.role == MessageRole.TOOL and not self.tool_results:
            raise ValueError("Tool messages must carry at least one tool call result")
        return self

    @property
    def text(self) -> str:
        """Concatenated text parts."""
        return "\n".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def tool_calls(self) -> list[ToolCallRequestPart]:
        return [p for p in self.parts if isinstance(p, ToolCallRequestPart)]

    @property
    def tool_results(self) -> list[ToolCallResultPart]:
        return [p for p in self.parts if isinstance(p, ToolCallResultPart)]

    @property
    def attachments(self) -> list[BinaryPart]:
        return [p for p in self.parts if isinstance(p, BinaryPart)]

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, parts=(TextPart(text=text),))

    @classmethod
    def user(cls, text: str, attachments: list[BinaryPart] | None = None) -> "Message":
        parts: list[Any] = [TextPart(text=text)]
        parts.extend(attachments or [])
        return cls(role=MessageRole.USER, parts=tuple(parts))

    @classmethod
    def assistant(
        cls, text: str = "", tool_calls: list[ToolCallRequestPart] | None = None
    ) -> "Message":
        parts: list[Any] = [TextPart(text=text)] if text else []
        parts.extend(tool_calls or [])
        return cls(role=MessageRole.ASSISTANT, parts=tuple(parts))

    @classmethod
    def tool_result(
        cls, call_id: str, tool_id: str, content: str, is_error: bool = False
    ) -> "Message":
        return cls(
            role=MessageRole.TOOL,
            parts=(
                ToolCallResultPart(
                    call_id=call_id, tool_id=tool_id, content=content, is_error=is_error
                ),
            ),
        )


# === Backend boundary ===


class BackendResponse(BaseModel):
    """Answer of the reasoning backend for one turn."""

    text: str = ""
    tool_calls: list[ToolCallRequestPart] = Field(default_factory=list)
    model: str | None = None
    usage: dict[str, Any] = Field(default_factory=dict)
    cost: float = 0.0


# === Tools and resources ===


class ToolResult(BaseModel):
    """Result of a tool execution. An empty result is valid."""

    content: str = ""
    data: dict[str, Any] | None = None
    citations: list[str] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "ToolResult":
        return cls()


class ResourceHandle(BaseModel):
    """Opaque handle to an externally materialized object."""

    model_config = ConfigDict(frozen=True)

    id: str
    source_ref: str
    kind: ResourceKind = ResourceKind.VECTOR_STORE
    state: ResourceState = ResourceState.PENDING
    error: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    ready_at: datetime | None = None

    @property
    def is_ready(self) -> bool:
        return self.state == ResourceState.READY


# === Workflow graph ===


class WorkflowNode(BaseModel):
    """A node of a workflow graph."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    kind: NodeKind
    agent: AgentDefinition | None = None
    agent_ref: str | None = None
    variables: dict[str, Any] = Field(default_factory=dict)
    input: str | None = None
    output: str | None = None
    description: str = ""


class WorkflowEdge(BaseModel):
    """A transition between two nodes, optionally guarded by a predicate."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    when: str | None = None

    @property
    def is_conditional(self) -> bool:
        return bool(self.when and self.when.strip())


# === Run results ===


class RunFailure(BaseModel):
    """Structured description of why a run failed."""

    kind: str
    message: str
    node_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: Exception, node_id: str | None = None) -> "RunFailure":
        if isinstance(exc, WorkflowEngineError):
            return cls(kind=exc.kind, message=exc.message, node_id=exc.node_id or node_id)
        return cls(kind="internal_error", message=str(exc) or type(exc).__name__, node_id=node_id)


class WorkflowResult(BaseModel):
    """Final answer of a workflow run plus the full variable trail."""

    run_id: str
    workflow: str
    status: RunStatus
    final_output: str | None = None
    terminal_node: str | None = None
    variables: dict[str, Any] = Field(default_factory=dict)
    trail: list[str] = Field(default_factory=list)
    steps: int = 0
    events: list[dict[str, Any]] = Field(default_factory=list)
    error: RunFailure | None = None
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.COMPLETED
