"""AgentArea Workflows: declarative multi-agent workflows over LLM backends.

Agents, tools and routing are described in YAML; the runner walks the
graph, letting each agent node converse with a reasoning backend and call
its tools until a terminal node is reached.
"""

from .agents import AgentCatalog
from .domain import (
    AgentDefinition,
    BackendResponse,
    Message,
    ReasoningBackend,
    ResourceProvider,
    ToolContext,
    ToolHandler,
    ToolResult,
    WorkflowResult,
)
from .exceptions import WorkflowDefinitionError, WorkflowEngineError
from .graph import WorkflowGraph, load_workflow
from .resources import ResourceBinder
from .runner import WorkflowFactory, WorkflowRunner
from .threads import ConversationThread
from .tools import ToolRegistry

__version__ = "0.1.0"

__all__ = [
    "AgentCatalog",
    "AgentDefinition",
    "BackendResponse",
    "ConversationThread",
    "Message",
    "ReasoningBackend",
    "ResourceBinder",
    "ResourceProvider",
    "ToolContext",
    "ToolHandler",
    "ToolRegistry",
    "ToolResult",
    "WorkflowDefinitionError",
    "WorkflowEngineError",
    "WorkflowFactory",
    "WorkflowGraph",
    "WorkflowResult",
    "WorkflowRunner",
    "load_workflow",
]
