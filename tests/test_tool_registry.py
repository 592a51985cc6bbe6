"""Tests for the tool registry and function tools."""

import asyncio

import pytest

from agentarea_workflows.domain.enums import ToolCapability
from agentarea_workflows.domain.interfaces import ToolContext
from agentarea_workflows.domain.models import ToolResult
from agentarea_workflows.exceptions import ToolExecutionError, ToolTimeout, UnknownTool
from agentarea_workflows.testing import RecordingToolHandler
from agentarea_workflows.tools import (
    CodeInterpreterConfig,
    CustomFunctionConfig,
    ToolDescriptor,
)
from agentarea_workflows.tools.function_tool import build_parameters_schema, parse_docstring

pytestmark = pytest.mark.asyncio


@pytest.fixture
def context():
    """Tool context of an ad-hoc run."""
    return ToolContext(run_id="run-1", node_id="node-1", agent_name="assistant")


class TestRegistration:
    """Registering and resolving tools."""

    async def test_register_and_resolve(self, registry, echo_handler):
        """A registered tool resolves to its descriptor and definition."""
        registry.register_tool("echo", echo_handler, CustomFunctionConfig(), description="Echo")

        descriptor = registry.resolve("echo")
        assert descriptor.capability == ToolCapability.CUSTOM_FUNCTION
        assert "echo" in registry
        assert len(registry) == 1
        assert registry.definitions(["echo"]) == [
            {
                "type": "function",
                "function": {
                    "name": "echo",
                    "description": "Echo",
                    "parameters": {"type": "object", "properties": {}, "required": []},
                },
            }
        ]

    async def test_duplicate_id_rejected(self, echo_registry, echo_handler):
        """Tool ids are unique."""
        with pytest.raises(ValueError, match="already registered"):
            echo_registry.register_tool("echo", echo_handler, CustomFunctionConfig())

    async def test_capability_mismatch_rejected(self, registry, echo_handler):
        """A handler only serves its own capability."""
        with pytest.raises(ValueError, match="cannot serve"):
            registry.register_tool("code", echo_handler, CodeInterpreterConfig())

    async def test_invalid_tool_id(self, echo_handler):
        """Tool ids must be usable as function names."""
        with pytest.raises(ValueError):
            ToolDescriptor(tool_id="has space", config=CustomFunctionConfig(), handler=echo_handler)

    async def test_unknown_tool(self, registry):
        """Resolving an unregistered id raises UnknownTool."""
        with pytest.raises(UnknownTool):
            registry.resolve("missing")


class TestExecution:
    """Running handlers through the registry."""

    async def test_execute_returns_handler_result(self, echo_registry, echo_handler, context):
        """Arguments and context reach the handler unchanged."""
        descriptor = echo_registry.resolve("echo")
        result = await echo_registry.execute(descriptor, {"text": "hi"}, context)

        assert result.content == "echo: hi"
        assert echo_handler.invocations == [({"text": "hi"}, context)]

    async def test_handler_error_wrapped(self, registry, context):
        """Exceptions raised by a handler become ToolExecutionError."""
        registry.register_tool(
            "broken", RecordingToolHandler(error=RuntimeError("disk full")), CustomFunctionConfig()
        )
        with pytest.raises(ToolExecutionError) as exc_info:
            await registry.execute(registry.resolve("broken"), {}, context)
        assert "disk full" in str(exc_info.value)
        assert exc_info.value.tool_id == "broken"

    async def test_timeout(self, registry, context):
        """A handler exceeding the timeout raises ToolTimeout."""

        async def slow() -> str:
            """Sleep for a long time."""
            await asyncio.sleep(10)
            return "late"

        registry.register_function(slow)
        with pytest.raises(ToolTimeout):
            await registry.execute(registry.resolve("slow"), {}, context, timeout_seconds=0.01)

    async def test_empty_result_is_valid(self, registry, context):
        """A function returning nothing yields an empty result."""
        registry.register_function(lambda: None, tool_id="noop")
        result = await registry.execute(registry.resolve("noop"), {}, context)
        assert result == ToolResult.empty()


class TestFunctionTools:
    """Python callables registered as custom function tools."""

    async def test_schema_from_signature_and_docstring(self):
        """Parameters, types, defaults and descriptions are derived."""

        def convert(amount: float, currency: str = "EUR", context=None) -> str:
            """Convert an amount.

            Args:
                amount: Amount to convert
                currency: Target currency code

            Returns:
                The converted amount
            """
            return f"{amount} {currency}"

        summary, arg_docs = parse_docstring(convert.__doc__)
        assert summary == "Convert an amount."
        assert arg_docs == {"amount": "Amount to convert", "currency": "Target currency code"}

        assert build_parameters_schema(convert) == {
            "type": "object",
            "properties": {
                "amount": {"type": "number", "description": "Amount to convert"},
                "currency": {
                    "type": "string",
                    "description": "Target currency code",
                    "default": "EUR",
                },
            },
            "required": ["amount"],
        }

    async def test_async_function_with_context(self, registry, context):
        """Async functions are awaited and receive the context when asked."""

        async def whoami(context: ToolContext) -> dict:
            """Report the calling agent."""
            return {"agent": context.agent_name, "node": context.node_id}

        descriptor = registry.register_function(whoami)
        assert descriptor.description == "Report the calling agent."

        result = await registry.execute(descriptor, {}, context)
        assert result.data == {"agent": "assistant", "node": "node-1"}
        assert '"agent": "assistant"' in result.content
