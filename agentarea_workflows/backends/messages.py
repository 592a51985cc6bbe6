"""Conversion between thread messages and OpenAI-style chat messages."""

import base64
import json
import logging
from typing import Any
from uuid import uuid4

from ..domain.enums import MessageRole
from ..domain.models import Message, ToolCallRequestPart

logger = logging.getLogger(__name__)


def normalize_message_dict(message_dict: dict[str, Any]) -> dict[str, Any]:
    """Drop optional fields without a value, keeping ``role`` and ``content``."""
    normalized = {"role": message_dict["role"], "content": message_dict.get("content")}
    for key in ("tool_call_id", "name", "tool_calls"):
        if message_dict.get(key) is not None:
            normalized[key] = message_dict[key]
    return normalized


def _user_content(message: Message) -> str | list[dict[str, Any]]:
    if not message.attachments:
        return message.text

    content: list[dict[str, Any]] = [{"type": "text", "text": message.text}]
    for part in message.attachments:
        if part.media_type.startswith("image/"):
            encoded = base64.b64encode(part.data).decode("ascii")
            url = f"data:{part.media_type};base64,{encoded}"
            content.append({"type": "image_url", "image_url": {"url": url}})
        else:
            content.append(
                {"type": "text", "text": f"[attachment: {part.media_type}, {len(part.data)} bytes]"}
            )
    return content


def to_openai_messages(messages: tuple[Message, ...] | list[Message]) -> list[dict[str, Any]]:
    """Render a thread snapshot as chat-completion messages.

    A tool message becomes one ``tool`` message per result part, each
    carrying the ``tool_call_id`` of the request it answers.
    """
    rendered: list[dict[str, Any]] = []
    for message in messages:
        if message.role == MessageRole.TOOL:
            for result in message.tool_results:
                content = f"Error: {result.content}" if result.is_error else result.content
                rendered.append(
                    {"role": "tool", "tool_call_id": result.call_id, "content": content}
                )
            continue

        if message.role == MessageRole.ASSISTANT:
            tool_calls = [
                {
                    "id": call.call_id,
                    "type": "function",
                    "function": {"name": call.tool_id, "arguments": json.dumps(call.arguments)},
                }
                for call in message.tool_calls
            ]
            rendered.append(
                normalize_message_dict(
                    {
                        "role": "assistant",
                        "content": message.text or None,
                        "tool_calls": tool_calls or None,
                    }
                )
            )
            continue

        content = _user_content(message) if message.role == MessageRole.USER else message.text
        rendered.append({"role": message.role.value, "content": content})
    return rendered


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_tool_calls(message: Any) -> list[ToolCallRequestPart]:
    """Parse tool calls from a chat-completion message, dict or object form.

    Arguments that are not valid JSON are passed through as ``raw_args`` so
    the tool can report the problem back instead of the turn failing.
    """
    raw_calls = _field(message, "tool_calls")
    if not raw_calls or not isinstance(raw_calls, list | tuple):
        return []

    parts = []
    for raw in raw_calls:
        function = _field(raw, "function")
        name = _field(function, "name") if function is not None else None
        if not isinstance(name, str) or not name:
            logger.warning(f"Skipping tool call without a function name: {raw}")
            continue

        arguments = _field(function, "arguments")
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError:
                arguments = {"raw_args": arguments}
        if not isinstance(arguments, dict):
            arguments = {"raw_args": arguments}

        call_id = _field(raw, "id")
        if not isinstance(call_id, str) or not call_id:
            call_id = f"call_{uuid4().hex[:12]}"
        parts.append(ToolCallRequestPart(call_id=call_id, tool_id=name, arguments=arguments))
    return parts
