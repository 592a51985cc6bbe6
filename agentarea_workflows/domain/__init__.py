"""Domain models, enums and boundaries of the workflow engine."""

from .enums import (
    ContentPartType,
    LoopState,
    MessageRole,
    NodeKind,
    ResourceKind,
    ResourceState,
    RunStatus,
    ThreadStatus,
    ToolCapability,
)
from .interfaces import ReasoningBackend, ResourceProvider, ToolContext, ToolHandler
from .models import (
    AgentDefinition,
    BackendResponse,
    BinaryPart,
    ContentPart,
    Message,
    ResourceHandle,
    RunFailure,
    TextPart,
    ToolCallRequestPart,
    ToolCallResultPart,
    ToolResult,
    WorkflowEdge,
    WorkflowNode,
    WorkflowResult,
)

__all__ = [
    "AgentDefinition",
    "BackendResponse",
    "BinaryPart",
    "ContentPart",
    "ContentPartType",
    "LoopState",
    "Message",
    "MessageRole",
    "NodeKind",
    "ReasoningBackend",
    "ResourceHandle",
    "ResourceKind",
    "ResourceProvider",
    "ResourceState",
    "RunFailure",
    "RunStatus",
    "TextPart",
    "ThreadStatus",
    "ToolCallRequestPart",
    "ToolCallResultPart",
    "ToolCapability",
    "ToolContext",
    "ToolHandler",
    "ToolResult",
    "WorkflowEdge",
    "WorkflowNode",
    "WorkflowResult",
]
