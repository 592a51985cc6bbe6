"""Resource providers that materialize vector stores."""

import logging
from abc import abstractmethod
from collections.abc import Iterable
from uuid import uuid4

from ..domain.enums import ResourceState
from ..domain.interfaces import ResourceProvider
from ..exceptions import ResourceCreationError
from .embeddings import EmbeddingService, LiteLLMEmbeddingService
from .vector_store import Document, FaissVectorStore, VectorStore

logger = logging.getLogger(__name__)


class VectorStoreProvider(ResourceProvider):
    """A provider whose ready resources can be searched."""

    @abstractmethod
    def get_vector_store(self, resource_id: str) -> VectorStore:
        """Return the store behind a ready resource id.

        Raises:
            LookupError: If the id is unknown to this provider
        """


class InMemoryResourceProvider(VectorStoreProvider):
    """Indexes registered document sources into in-process FAISS stores.

    Documents are embedded with ``embedding_service`` (LiteLLM by default)
    when a store is created. ``ready_after_polls`` is the number of status
    polls that report ``pending`` before a new store turns ``ready``,
    simulating asynchronous indexing on a remote service.
    """

    def __init__(
        self, embedding_service: EmbeddingService | None = None, ready_after_polls: int = 0
    ):
        self.embedding_service = embedding_service or LiteLLMEmbeddingService()
        self.ready_after_polls = ready_after_polls
        self.create_calls = 0
        self._sources: dict[str, list[Document]] = {}
        self._failing_sources: dict[str, str] = {}
        self._stores: dict[str, FaissVectorStore] = {}
        self._source_of: dict[str, str] = {}
        self._polls: dict[str, int] = {}

    def add_source(self, source_ref: str, documents: Iterable[Document | str]) -> None:
        """Register the documents behind a source reference.

        Plain strings become documents with ids ``<source_ref>#<n>``.
        """
        docs = []
        for i, doc in enumerate(documents):
            if isinstance(doc, str):
                doc = Document(id=f"{source_ref}#{i}", text=doc)
            docs.append(doc)
        self._sources[source_ref] = docs

    def fail_indexing(self, source_ref: str, reason: str = "indexing failed") -> None:
        """Make stores created from ``source_ref`` end in the failed state."""
        self._failing_sources[source_ref] = reason

    async def create(self, source_ref: str) -> str:
        self.create_calls += 1
        documents = self._sources.get(source_ref)
        if documents is None:
            raise ResourceCreationError(source_ref, "unknown source")
        if not documents:
            raise ResourceCreationError(source_ref, "source has no documents")

        resource_id = f"vs_{uuid4().hex[:16]}"
        store = FaissVectorStore(resource_id, self.embedding_service)
        await store.add_documents(documents)
        self._stores[resource_id] = store
        self._source_of[resource_id] = source_ref
        self._polls[resource_id] = 0
        logger.info(f"Created vector store {resource_id} from {source_ref} ({len(documents)} docs)")
        return resource_id

    async def status(self, resource_id: str) -> ResourceState:
        if resource_id not in self._stores:
            logger.warning(f"Status requested for unknown resource {resource_id}")
            return ResourceState.FAILED
        if self._source_of[resource_id] in self._failing_sources:
            return ResourceState.FAILED

        self._polls[resource_id] += 1
        if self._polls[resource_id] <= self.ready_after_polls:
            return ResourceState.PENDING
        return ResourceState.READY

    def failure_reason(self, resource_id: str) -> str | None:
        return self._failing_sources.get(self._source_of.get(resource_id, ""))

    def get_vector_store(self, resource_id: str) -> FaissVectorStore:
        try:
            return self._stores[resource_id]
        except KeyError:
            raise LookupError(f"Unknown vector store: {resource_id}") from None
