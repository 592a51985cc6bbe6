"""Tool registry: maps tool ids to capability-typed handlers."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any

from ..domain.interfaces import ToolContext, ToolHandler
from ..domain.models import ToolResult
from ..exceptions import ToolExecutionError, ToolTimeout, UnknownTool
from .configs import CustomFunctionConfig, ToolConfig, ToolDescriptor
from .function_tool import FunctionToolHandler, build_parameters_schema, parse_docstring

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT_SECONDS = 180.0


class ToolRegistry:
    """Holds every tool an agent may reference.

    The registry is read-only once runs start and may be shared between
    concurrent runs. It never retries a handler: each ``execute`` call runs
    the handler exactly once.
    """

    def __init__(self, tool_timeout_seconds: float | None = None):
        self._tools: dict[str, ToolDescriptor] = {}
        self.tool_timeout_seconds = tool_timeout_seconds or DEFAULT_TOOL_TIMEOUT_SECONDS

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def tool_ids(self) -> list[str]:
        return list(self._tools)

    def register(self, descriptor: ToolDescriptor) -> ToolDescriptor:
        """Register a tool descriptor.

        Raises:
            ValueError: If the id is taken or the handler does not serve the config's capability
        """
        if descriptor.tool_id in self._tools:
            raise ValueError(f"Tool '{descriptor.tool_id}' is already registered")
        handler_capability = getattr(descriptor.handler, "capability", None)
        if handler_capability != descriptor.capability:
            raise ValueError(
                f"Handler {type(descriptor.handler).__name__} cannot serve "
                f"capability '{descriptor.capability.value}' of tool '{descriptor.tool_id}'"
            )
        self._tools[descriptor.tool_id] = descriptor
        logger.debug(f"Registered tool {descriptor.tool_id} ({descriptor.capability.value})")
        return descriptor

    def register_tool(
        self,
        tool_id: str,
        handler: ToolHandler,
        config: ToolConfig,
        description: str = "",
    ) -> ToolDescriptor:
        """Build and register a descriptor in one call."""
        return self.register(
            ToolDescriptor(tool_id=tool_id, description=description, config=config, handler=handler)
        )

    def register_function(
        self,
        fn: Callable[..., Any],
        tool_id: str | None = None,
        description: str | None = None,
    ) -> ToolDescriptor:
        """Register a Python callable as a custom function tool.

        Args:
            fn: Sync or async callable; a ``context`` parameter receives the ToolContext
            tool_id: Tool id, defaults to the function name
            description: Tool description, defaults to the docstring summary
        """
        summary, _ = parse_docstring(fn.__doc__)
        config = CustomFunctionConfig(parameters=build_parameters_schema(fn))
        return self.register_tool(
            tool_id or fn.__name__,
            FunctionToolHandler(fn),
            config,
            description=description if description is not None else summary,
        )

    def resolve(self, tool_id: str) -> ToolDescriptor:
        """Look up a tool by id.

        Raises:
            UnknownTool: If no tool with this id is registered
        """
        try:
            return self._tools[tool_id]
        except KeyError:
            raise UnknownTool(tool_id) from None

    def definitions(self, tool_ids: Iterable[str]) -> list[dict[str, Any]]:
        """OpenAI-style function definitions for the given tool ids, in order."""
        return [self.resolve(tool_id).definition() for tool_id in tool_ids]

    async def execute(
        self,
        descriptor: ToolDescriptor,
        arguments: dict[str, Any],
        context: ToolContext,
        timeout_seconds: float | None = None,
    ) -> ToolResult:
        """Run a tool handler once.

        Args:
            descriptor: Resolved tool descriptor
            arguments: Structured arguments from the tool call request
            context: Run-scoped tool context
            timeout_seconds: Overrides the registry's default tool timeout

        Returns:
            The handler's ToolResult; an empty result is valid

        Raises:
            ToolExecutionError: If the handler raised
            ToolTimeout: If the handler did not finish in time
        """
        timeout = timeout_seconds or self.tool_timeout_seconds
        logger.info(f"Executing tool {descriptor.tool_id}")
        try:
            result = await asyncio.wait_for(
                descriptor.handler.execute(descriptor.config, arguments, context),
                timeout=timeout,
            )
        except TimeoutError:
            raise ToolTimeout(descriptor.tool_id, timeout) from None
        except (ToolExecutionError, ToolTimeout):
            raise
        except Exception as e:
            logger.warning(f"Tool {descriptor.tool_id} failed: {e}")
            raise ToolExecutionError(descriptor.tool_id, e) from e

        if result is None:
            return ToolResult.empty()
        if not isinstance(result, ToolResult):
            raise ToolExecutionError(
                descriptor.tool_id, f"handler returned {type(result).__name__}, not ToolResult"
            )
        return result
