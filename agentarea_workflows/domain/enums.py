"""Workflow engine enums and value objects."""

from enum import Enum


class MessageRole(str, Enum):
    """Role of a message in a conversation thread."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ContentPartType(str, Enum):
    """Types of content parts a message can carry."""

    TEXT = "text"
    BINARY = "binary"
    TOOL_CALL_REQUEST = "tool_call_request"
    TOOL_CALL_RESULT = "tool_call_result"


class ThreadStatus(str, Enum):
    """Status of a conversation thread."""

    ACTIVE = "active"
    AWAITING_TOOL = "awaiting_tool"
    COMPLETED = "completed"
    FAILED = "failed"


class ToolCapability(str, Enum):
    """Closed set of tool capabilities the registry can dispatch."""

    FILE_SEARCH = "file_search"
    CODE_INTERPRETER = "code_interpreter"
    WEB_SEARCH = "web_search"
    VISION = "vision"
    CUSTOM_FUNCTION = "custom_function"


class ResourceState(str, Enum):
    """Readiness of an externally materialized resource."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class ResourceKind(str, Enum):
    """Kinds of external resources a tool may need."""

    VECTOR_STORE = "vector_store"
    FILE = "file"


class NodeKind(str, Enum):
    """Kinds of workflow nodes."""

    AGENT = "agent"
    CONDITION = "condition"
    TERMINAL = "terminal"


class LoopState(str, Enum):
    """States of the tool invocation loop."""

    AWAITING_BACKEND = "awaiting_backend"
    INTERPRETING = "interpreting"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    FAILED = "failed"


class RunStatus(str, Enum):
    """Status of a workflow run."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
