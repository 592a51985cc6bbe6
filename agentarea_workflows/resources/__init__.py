"""External resources: binder, providers, embeddings and vector stores."""

from .binder import ResourceBinder
from .embeddings import EmbeddingService, LiteLLMEmbeddingService
from .providers import InMemoryResourceProvider, VectorStoreProvider
from .vector_store import Document, FaissVectorStore, SearchHit, VectorStore

__all__ = [
    "Document",
    "EmbeddingService",
    "FaissVectorStore",
    "InMemoryResourceProvider",
    "LiteLLMEmbeddingService",
    "ResourceBinder",
    "SearchHit",
    "VectorStore",
    "VectorStoreProvider",
]
