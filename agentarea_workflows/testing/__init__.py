"""Testing utilities for the workflow engine.

Scripted backends, recording tool handlers and offline embeddings shared by
the test suite and by anyone embedding the engine.
"""

from .mocks import (
    KeywordEmbeddingService,
    RecordingToolHandler,
    ScriptedBackend,
    text_response,
    tool_call_response,
)

__all__ = [
    "KeywordEmbeddingService",
    "RecordingToolHandler",
    "ScriptedBackend",
    "text_response",
    "tool_call_response",
]
