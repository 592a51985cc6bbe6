"""Turn plain Python callables into custom function tools.

The JSON schema is derived from the signature and the Google-style ``Args:``
section of the docstring, the same way toolset methods are described.
"""

import inspect
import json
import re
import types
from collections.abc import Callable
from typing import Any, ClassVar, Union, get_args, get_origin

from ..domain.enums import ToolCapability
from ..domain.interfaces import ToolContext, ToolHandler
from ..domain.models import ToolResult
from .configs import CustomFunctionConfig

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    tuple: "array",
    dict: "object",
}

_ARG_LINE = re.compile(r"^\s{2,}(\w+)(?:\s*\([^)]*\))?:\s*(.*)$")


def _json_type(annotation: Any) -> dict[str, Any]:
    if annotation is inspect.Parameter.empty or annotation is Any:
        return {"type": "string"}

    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        members = [a for a in get_args(annotation) if a is not type(None)]
        return _json_type(members[0]) if len(members) == 1 else {"type": "string"}
    if origin is not None:
        schema: dict[str, Any] = {"type": _JSON_TYPES.get(origin, "string")}
        args = get_args(annotation)
        if schema["type"] == "array" and args:
            schema["items"] = _json_type(args[0])
        return schema

    return {"type": _JSON_TYPES.get(annotation, "string")}


def parse_docstring(doc: str | None) -> tuple[str, dict[str, str]]:
    """Split a Google-style docstring into summary and argument descriptions."""
    if not doc:
        return "", {}

    lines = inspect.cleandoc(doc).splitlines()
    summary = lines[0].strip() if lines else ""
    arg_docs: dict[str, str] = {}
    in_args = False
    current: str | None = None
    for line in lines[1:]:
        stripped = line.strip()
        if stripped in ("Args:", "Arguments:"):
            in_args = True
            continue
        if in_args and stripped.endswith(":") and not line.startswith(" "):
            break
        if not in_args:
            continue
        match = _ARG_LINE.match(line)
        if match:
            current = match.group(1)
            arg_docs[current] = match.group(2).strip()
        elif current and stripped:
            arg_docs[current] = f"{arg_docs[current]} {stripped}"
    return summary, arg_docs


def build_parameters_schema(fn: Callable[..., Any]) -> dict[str, Any]:
    """JSON schema for the keyword arguments of ``fn``.

    A parameter named ``context`` receives the ToolContext and is not exposed.
    """
    _, arg_docs = parse_docstring(fn.__doc__)
    signature = inspect.signature(fn)
    properties: dict[str, Any] = {}
    required: list[str] = []

    for name, param in signature.parameters.items():
        if name in ("self", "cls", "context") or param.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ):
            continue
        prop = _json_type(param.annotation)
        if name in arg_docs:
            prop["description"] = arg_docs[name]
        if param.default is inspect.Parameter.empty:
            required.append(name)
        elif param.default is not None:
            prop["default"] = param.default
        properties[name] = prop

    return {"type": "object", "properties": properties, "required": required}


def to_tool_result(value: Any) -> ToolResult:
    """Normalize whatever a function returned into a ToolResult."""
    if value is None:
        return ToolResult.empty()
    if isinstance(value, ToolResult):
        return value
    if isinstance(value, str):
        return ToolResult(content=value)
    if isinstance(value, dict):
        return ToolResult(content=json.dumps(value, default=str), data=value)
    return ToolResult(content=str(value))


class FunctionToolHandler(ToolHandler):
    """Calls a sync or async Python function with the tool arguments."""

    capability: ClassVar[ToolCapability] = ToolCapability.CUSTOM_FUNCTION

    def __init__(self, fn: Callable[..., Any]):
        self.fn = fn
        self._wants_context = "context" in inspect.signature(fn).parameters

    def parameters(self, config: CustomFunctionConfig) -> dict[str, Any]:
        return config.parameters

    async def execute(
        self, config: CustomFunctionConfig, arguments: dict[str, Any], context: ToolContext
    ) -> ToolResult:
        kwargs = dict(arguments)
        if self._wants_context:
            kwargs["context"] = context
        result = self.fn(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return to_tool_result(result)
