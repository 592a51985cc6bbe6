"""Tests for the LiteLLM reasoning backend and message conversion."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import litellm
import pytest

from agentarea_workflows.backends import LiteLLMBackend, extract_tool_calls, to_openai_messages
from agentarea_workflows.config import LLMSettings
from agentarea_workflows.domain.models import (
    AgentDefinition,
    BinaryPart,
    Message,
    ToolCallRequestPart,
)
from agentarea_workflows.exceptions import BackendCommunicationError

pytestmark = pytest.mark.asyncio

TOOLS = [{"type": "function", "function": {"name": "echo", "parameters": {"type": "object"}}}]


def _response(content="", tool_calls=None, cost=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    response = SimpleNamespace(
        choices=[SimpleNamespace(message=message)],
        model="gpt-4o-mini",
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=5, total_tokens=17),
    )
    if cost is not None:
        response._hidden_params = {"response_cost": cost}
    return response


@pytest.fixture
def agent():
    """Agent with its own model and sampling settings."""
    return AgentDefinition(name="writer", model="openai/gpt-4o", temperature=0.2, max_tokens=300)


@pytest.fixture
def messages():
    """A short conversation."""
    return (Message.system("Be brief."), Message.user("Hi"))


class TestLiteLLMBackend:
    """Calling litellm.acompletion."""

    async def test_build_params(self, agent, messages):
        """Agent settings win over defaults and tools enable tool choice."""
        backend = LiteLLMBackend(
            LLMSettings(API_KEY="sk-test", API_BASE="localhost:11434"), stream=False
        )
        params = backend.build_params(messages, agent, TOOLS)

        assert params["model"] == "openai/gpt-4o"
        assert params["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ]
        assert params["tools"] == TOOLS
        assert params["tool_choice"] == "auto"
        assert params["temperature"] == 0.2
        assert params["max_tokens"] == 300
        assert params["api_key"] == "sk-test"
        assert params["base_url"] == "http://localhost:11434"
        assert params["stream"] is False

    async def test_no_tools_no_tool_choice(self, messages):
        """Without tools the request carries no tool fields."""
        backend = LiteLLMBackend(LLMSettings(DEFAULT_MODEL="gpt-4o-mini"))
        params = backend.build_params(messages, AgentDefinition(name="plain"), [])

        assert params["model"] == "gpt-4o-mini"
        assert "tools" not in params
        assert "tool_choice" not in params

    async def test_complete_with_text(self, agent, messages):
        """Text answers are returned with usage and cost."""
        with patch(
            "agentarea_workflows.backends.litellm_backend.litellm.acompletion",
            new_callable=AsyncMock,
        ) as mock_completion:
            mock_completion.return_value = _response("Hello!", cost=0.0012)
            response = await LiteLLMBackend(LLMSettings()).complete(messages, agent, [])

        assert response.text == "Hello!"
        assert response.tool_calls == []
        assert response.usage == {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17}
        assert response.cost == pytest.approx(0.0012)
        assert mock_completion.await_args.kwargs["model"] == "openai/gpt-4o"

    async def test_complete_with_tool_calls(self, agent, messages):
        """Tool calls are parsed from the response."""
        tool_call = SimpleNamespace(
            id="call_abc",
            function=SimpleNamespace(name="echo", arguments=json.dumps({"text": "hi"})),
        )
        with patch(
            "agentarea_workflows.backends.litellm_backend.litellm.acompletion",
            new_callable=AsyncMock,
            return_value=_response(None, [tool_call]),
        ):
            response = await LiteLLMBackend(LLMSettings()).complete(messages, agent, TOOLS)

        assert response.text == ""
        assert response.tool_calls == [
            ToolCallRequestPart(call_id="call_abc", tool_id="echo", arguments={"text": "hi"})
        ]
        assert response.cost == 0.0

    async def test_transient_errors_are_retryable(self, agent, messages):
        """Rate limits are flagged retryable."""
        error = litellm.RateLimitError(
            message="slow down", llm_provider="openai", model="gpt-4o"
        )
        with patch(
            "agentarea_workflows.backends.litellm_backend.litellm.acompletion",
            new_callable=AsyncMock,
            side_effect=error,
        ):
            with pytest.raises(BackendCommunicationError) as exc_info:
                await LiteLLMBackend(LLMSettings()).complete(messages, agent, [])

        assert exc_info.value.retryable is True

    async def test_other_errors_are_permanent(self, agent, messages):
        """Unexpected failures are not retried."""
        with patch(
            "agentarea_workflows.backends.litellm_backend.litellm.acompletion",
            new_callable=AsyncMock,
            side_effect=ValueError("bad request"),
        ):
            with pytest.raises(BackendCommunicationError) as exc_info:
                await LiteLLMBackend(LLMSettings()).complete(messages, agent, [])

        assert exc_info.value.retryable is False
        assert "bad request" in str(exc_info.value)

    async def test_malformed_response(self, agent, messages):
        """Responses without choices are rejected."""
        with patch(
            "agentarea_workflows.backends.litellm_backend.litellm.acompletion",
            new_callable=AsyncMock,
            return_value=SimpleNamespace(choices=[]),
        ):
            with pytest.raises(BackendCommunicationError, match="Malformed"):
                await LiteLLMBackend(LLMSettings()).complete(messages, agent, [])


class TestMessageConversion:
    """Thread messages to chat-completion format and back."""

    async def test_tool_round_trip_messages(self):
        """Assistant requests and tool results map to OpenAI tool messages."""
        call = ToolCallRequestPart(call_id="c1", tool_id="echo", arguments={"text": "hi"})
        rendered = to_openai_messages(
            [
                Message.assistant(tool_calls=[call]),
                Message.tool_result("c1", "echo", "failed badly", is_error=True),
            ]
        )

        assert rendered == [
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "c1",
                        "type": "function",
                        "function": {"name": "echo", "arguments": '{"text": "hi"}'},
                    }
                ],
            },
            {"role": "tool", "tool_call_id": "c1", "content": "Error: failed badly"},
        ]

    async def test_image_attachments(self):
        """Images are sent as data URIs next to the text."""
        message = Message.user("What is this?", [BinaryPart(media_type="image/png", data=b"abc")])
        content = to_openai_messages([message])[0]["content"]

        assert content[0] == {"type": "text", "text": "What is this?"}
        assert content[1]["image_url"]["url"] == "data:image/png;base64,YWJj"

    async def test_extract_tool_calls_from_dicts(self):
        """Dict responses and broken JSON arguments are handled."""
        calls = extract_tool_calls(
            {
                "tool_calls": [
                    {"id": "c1", "function": {"name": "echo", "arguments": "{not json"}},
                    {"function": {"name": "search", "arguments": ""}},
                    {"id": "c3", "function": {"arguments": "{}"}},
                ]
            }
        )

        assert [c.tool_id for c in calls] == ["echo", "search"]
        assert calls[0].arguments == {"raw_args": "{not json"}
        assert calls[1].arguments == {}
        assert calls[1].call_id.startswith("call_")
