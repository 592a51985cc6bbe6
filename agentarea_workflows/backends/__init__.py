"""Reasoning backends."""

from .litellm_backend import LiteLLMBackend
from .messages import extract_tool_calls, to_openai_messages

__all__ = ["LiteLLMBackend", "extract_tool_calls", "to_openai_messages"]
