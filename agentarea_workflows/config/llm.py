"""Defaults for the LiteLLM reasoning backend and embeddings."""

from pydantic import Field

from .base import BaseAppSettings


class LLMSettings(BaseAppSettings):
    """Model defaults used when an agent does not pin its own."""

    DEFAULT_MODEL: str = Field(default="gpt-4o-mini", description="LiteLLM model name")
    API_BASE: str | None = Field(default=None, description="Custom endpoint URL")
    API_KEY: str | None = Field(default=None, description="Provider API key")
    TEMPERATURE: float | None = Field(default=None, ge=0.0, le=2.0)
    MAX_TOKENS: int | None = Field(default=None, ge=1)
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="LiteLLM embedding model for file search"
    )

    model_config = {"env_prefix": "LLM__", "env_file": ".env", "extra": "ignore"}
