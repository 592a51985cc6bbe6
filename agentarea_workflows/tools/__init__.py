"""Tool registry and built-in tool handlers."""

from .code_interpreter import CodeInterpreterTool
from .configs import (
    CodeInterpreterConfig,
    CustomFunctionConfig,
    FileSearchConfig,
    ToolConfig,
    ToolDescriptor,
    VisionConfig,
    WebSearchConfig,
)
from .file_search import FileSearchTool
from .function_tool import FunctionToolHandler
from .registry import ToolRegistry
from .vision import VisionTool
from .web_search import WebSearchTool

__all__ = [
    "CodeInterpreterConfig",
    "CodeInterpreterTool",
    "CustomFunctionConfig",
    "FileSearchConfig",
    "FileSearchTool",
    "FunctionToolHandler",
    "ToolConfig",
    "ToolDescriptor",
    "ToolRegistry",
    "VisionConfig",
    "VisionTool",
    "WebSearchConfig",
    "WebSearchTool",
]
