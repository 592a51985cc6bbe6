"""Provider-agnostic reasoning backend built on LiteLLM."""

import logging
from typing import Any

import litellm

from ..config import LLMSettings
from ..domain.interfaces import ReasoningBackend
from ..domain.models import AgentDefinition, BackendResponse, Message
from ..exceptions import BackendCommunicationError
from .messages import extract_tool_calls, to_openai_messages

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    litellm.APIConnectionError,
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
    litellm.Timeout,
)

_USAGE_FIELDS = ("prompt_tokens", "completion_tokens", "total_tokens")


class LiteLLMBackend(ReasoningBackend):
    """Calls ``litellm.acompletion`` with the agent's model and tools.

    Transport failures are mapped to ``BackendCommunicationError``; transient
    ones (connection errors, rate limits, 5xx, timeouts) are flagged
    retryable so the tool loop can back off and try again.
    """

    def __init__(self, settings: LLMSettings | None = None, **extra_params: Any):
        self.settings = settings or LLMSettings()
        self.extra_params = extra_params

    def build_params(
        self,
        messages: tuple[Message, ...],
        agent: AgentDefinition,
        tools: list[dict[str, Any]],
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": agent.model or self.settings.DEFAULT_MODEL,
            "messages": to_openai_messages(messages),
        }
        if tools:
            params["tools"] = tools
            params["tool_choice"] = "auto"

        temperature = agent.temperature
        if temperature is None:
            temperature = self.settings.TEMPERATURE
        if temperature is not None:
            params["temperature"] = temperature
        max_tokens = agent.max_tokens or self.settings.MAX_TOKENS
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        if self.settings.API_KEY:
            params["api_key"] = self.settings.API_KEY
        if self.settings.API_BASE:
            url = self.settings.API_BASE
            if not url.startswith("http"):
                url = f"http://{url}"
            params["base_url"] = url

        params.update(self.extra_params)
        return params

    async def complete(
        self,
        messages: tuple[Message, ...],
        agent: AgentDefinition,
        tools: list[dict[str, Any]],
    ) -> BackendResponse:
        params = self.build_params(messages, agent, tools)
        logger.debug(f"Calling LLM {params['model']} for agent {agent.name}")

        try:
            response = await litellm.acompletion(**params)
        except TRANSIENT_ERRORS as e:
            raise BackendCommunicationError(
                f"Transient LLM failure ({type(e).__name__}): {e}", retryable=True
            ) from e
        except Exception as e:
            raise BackendCommunicationError(
                f"LLM call failed ({type(e).__name__}): {e}", retryable=False
            ) from e

        try:
            message = response.choices[0].message
        except (AttributeError, IndexError, TypeError) as e:
            raise BackendCommunicationError(
                f"Malformed LLM response: {e}", retryable=False
            ) from e

        content = message.get("content") if isinstance(message, dict) else message.content
        return BackendResponse(
            text=content if isinstance(content, str) else "",
            tool_calls=extract_tool_calls(message),
            model=response.model if isinstance(getattr(response, "model", None), str) else None,
            usage=self._usage(response),
            cost=self._cost(response),
        )

    @staticmethod
    def _usage(response: Any) -> dict[str, int]:
        usage = getattr(response, "usage", None)
        if isinstance(usage, dict):
            return {k: v for k, v in usage.items() if k in _USAGE_FIELDS and isinstance(v, int)}
        values = {name: getattr(usage, name, None) for name in _USAGE_FIELDS}
        return {k: v for k, v in values.items() if isinstance(v, int)}

    @staticmethod
    def _cost(response: Any) -> float:
        hidden = getattr(response, "_hidden_params", None)
        cost = hidden.get("response_cost") if isinstance(hidden, dict) else None
        return float(cost) if isinstance(cost, int | float) else 0.0
