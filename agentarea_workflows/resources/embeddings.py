"""Embedding services turning text into vectors for the vector stores."""

import logging
from abc import ABC, abstractmethod

import litellm

from ..config import LLMSettings

logger = logging.getLogger(__name__)


class EmbeddingService(ABC):
    """Generates one embedding vector per input text."""

    @abstractmethod
    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        """Embed ``texts``, preserving their order."""


class LiteLLMEmbeddingService(EmbeddingService):
    """Embeddings from any provider LiteLLM supports.

    The model, key and endpoint come from ``LLM__EMBEDDING_MODEL``,
    ``LLM__API_KEY`` and ``LLM__API_BASE`` unless a model is passed in.
    """

    def __init__(self, settings: LLMSettings | None = None, model: str | None = None):
        self.settings = settings or LLMSettings()
        self.model = model or self.settings.EMBEDDING_MODEL

    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        params = {"model": self.model, "input": texts}
        if self.settings.API_KEY:
            params["api_key"] = self.settings.API_KEY
        if self.settings.API_BASE:
            params["api_base"] = self.settings.API_BASE

        try:
            response = await litellm.aembedding(**params)
        except Exception as e:
            raise RuntimeError(f"Failed to generate embeddings: {e!s}") from e

        embeddings = [item["embedding"] for item in response.data]
        if len(embeddings) != len(texts):
            raise RuntimeError(
                f"Embedding model {self.model} returned {len(embeddings)} vectors "
                f"for {len(texts)} texts"
            )
        logger.debug(f"Embedded {len(texts)} text(s) with {self.model}")
        return embeddings
