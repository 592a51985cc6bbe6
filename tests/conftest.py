"""Shared fixtures for the workflow engine tests."""

import warnings

import pytest

from agentarea_workflows.config import get_settings
from agentarea_workflows.domain.models import AgentDefinition
from agentarea_workflows.execution.retry import RetryPolicy
from agentarea_workflows.execution.tool_loop import ToolInvocationLoop
from agentarea_workflows.resources import InMemoryResourceProvider, ResourceBinder
from agentarea_workflows.testing import KeywordEmbeddingService, RecordingToolHandler
from agentarea_workflows.tools import CustomFunctionConfig, FileSearchConfig, FileSearchTool
from agentarea_workflows.tools.registry import ToolRegistry

# Suppress noisy Pydantic serializer warnings coming from LiteLLM provider model types
warnings.filterwarnings(
    "ignore",
    message=r"^Pydantic serializer warnings:",
    category=UserWarning,
    module=r"pydantic\.main",
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; tests that patch env need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fast_retry():
    """Retry policy without backoff delays."""
    return RetryPolicy(initial_interval=0.0, maximum_attempts=3)


@pytest.fixture
def registry():
    """Empty tool registry."""
    return ToolRegistry(tool_timeout_seconds=5)


@pytest.fixture
def echo_handler():
    """Custom function handler echoing its arguments."""
    return RecordingToolHandler(respond=lambda args: f"echo: {args.get('text', '')}")


@pytest.fixture
def echo_registry(registry, echo_handler):
    """Registry with a single ``echo`` custom function tool."""
    registry.register_tool("echo", echo_handler, CustomFunctionConfig(), description="Echo text")
    return registry


@pytest.fixture
def embeddings():
    """Offline keyword embeddings."""
    return KeywordEmbeddingService()


@pytest.fixture
def provider(embeddings):
    """FAISS-backed document provider with a single policy document."""
    provider = InMemoryResourceProvider(embeddings)
    provider.add_source(
        "policies",
        ["Hotel stays are reimbursed up to 150 EUR per night. Receipts are required."],
    )
    return provider


@pytest.fixture
def binder(provider, fast_retry):
    """Resource binder polling without delays."""
    return ResourceBinder(
        provider, poll_interval_seconds=0, max_wait_seconds=1, create_retry_policy=fast_retry
    )


@pytest.fixture
def search_registry(registry, provider):
    """Registry with a ``policy_search`` file search tool over ``policies``."""
    registry.register_tool(
        "policy_search",
        FileSearchTool(provider),
        FileSearchConfig(source_ref="policies"),
        description="Search the policies",
    )
    return registry


@pytest.fixture
def assistant_agent():
    """Agent allowed to call the echo tool."""
    return AgentDefinition(
        name="assistant", instructions="You are a helpful assistant.", tools=("echo",)
    )


@pytest.fixture
def make_loop(fast_retry):
    """Factory for tool loops with test-friendly limits."""

    def _make_loop(backend, registry, binder=None, **kwargs):
        kwargs.setdefault("retry_policy", fast_retry)
        kwargs.setdefault("backend_timeout_seconds", 5)
        kwargs.setdefault("tool_timeout_seconds", 5)
        return ToolInvocationLoop(backend, registry, binder, **kwargs)

    return _make_loop
