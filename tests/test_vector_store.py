"""Tests for the FAISS vector store and the embedding services."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from agentarea_workflows.config import LLMSettings
from agentarea_workflows.resources import Document, FaissVectorStore, LiteLLMEmbeddingService
from agentarea_workflows.resources.vector_store import split_chunks
from agentarea_workflows.testing import KeywordEmbeddingService

HANDBOOK = [
    Document(
        id="travel.md",
        text="Hotel stays are reimbursed up to 150 EUR per night. Receipts are required.",
    ),
    Document(id="security.md", text="Laptops must use full disk encryption."),
]


@pytest_asyncio.fixture
async def store():
    """Store indexing two handbook documents with keyword embeddings."""
    vector_store = FaissVectorStore("vs_test", KeywordEmbeddingService())
    await vector_store.add_documents(HANDBOOK)
    return vector_store


@pytest.mark.asyncio
class TestFaissVectorStore:
    """Inner-product search over normalized embeddings."""

    async def test_indexes_one_vector_per_sentence(self, store):
        """Each sentence chunk is indexed and mapped back to its document."""
        assert store.index.ntotal == 3
        assert store.document_ids == ["travel.md", "security.md"]
        assert {meta["document_id"] for meta in store.metadata.values()} == {
            "travel.md",
            "security.md",
        }

    async def test_best_chunk_becomes_snippet(self, store):
        """The matching sentence is returned as the snippet."""
        hits = await store.search("hotel per night")

        assert [hit.document_id for hit in hits] == ["travel.md"]
        assert hits[0].snippet == "Hotel stays are reimbursed up to 150 EUR per night."
        assert 0 < hits[0].score <= 1

    async def test_one_hit_per_document(self, store):
        """Several matching chunks of one document yield a single hit."""
        hits = await store.search("hotel receipts required")
        assert [hit.document_id for hit in hits] == ["travel.md"]

    async def test_ranked_by_similarity(self, store):
        """Documents are ranked best first and limited."""
        hits = await store.search("laptops encryption hotel", limit=5)
        assert [hit.document_id for hit in hits] == ["security.md", "travel.md"]

        limited = await store.search("laptops encryption hotel", limit=1)
        assert [hit.document_id for hit in limited] == ["security.md"]

    async def test_unrelated_query_finds_nothing(self, store):
        """Zero similarity is not a hit."""
        assert await store.search("quantum entanglement") == []
        assert await store.search("   ") == []

    async def test_empty_store(self):
        """Searching before anything is indexed returns no hits."""
        empty = FaissVectorStore("vs_empty", KeywordEmbeddingService())
        assert await empty.search("hotel") == []

    async def test_embedding_count_mismatch(self):
        """Embedding services must return one vector per chunk."""
        embeddings = AsyncMock()
        embeddings.generate_embeddings.return_value = [[1.0, 0.0]]
        vector_store = FaissVectorStore("vs_bad", embeddings)

        with pytest.raises(ValueError, match="Expected 3 embeddings"):
            await vector_store.add_documents(HANDBOOK)

    async def test_dimension_mismatch(self, store):
        """Later batches must match the index dimension."""
        store.embedding_service = AsyncMock()
        store.embedding_service.generate_embeddings.return_value = [[1.0, 0.0, 0.0]]

        with pytest.raises(ValueError, match="does not match index dimension"):
            await store.add_documents([Document(id="extra.md", text="One sentence.")])


@pytest.mark.asyncio
class TestLiteLLMEmbeddingService:
    """Embeddings through litellm.aembedding."""

    async def test_generate_embeddings(self):
        """Vectors are returned in input order with configured credentials."""
        settings = LLMSettings(
            EMBEDDING_MODEL="text-embedding-3-small",
            API_KEY="sk-test",
            API_BASE="http://llm.local",
        )
        response = SimpleNamespace(data=[{"embedding": [0.1, 0.2]}, {"embedding": [0.3, 0.4]}])

        with patch(
            "agentarea_workflows.resources.embeddings.litellm.aembedding",
            new_callable=AsyncMock,
            return_value=response,
        ) as mock_embedding:
            vectors = await LiteLLMEmbeddingService(settings).generate_embeddings(["a", "b"])

        assert vectors == [[0.1, 0.2], [0.3, 0.4]]
        mock_embedding.assert_awaited_once_with(
            model="text-embedding-3-small",
            input=["a", "b"],
            api_key="sk-test",
            api_base="http://llm.local",
        )

    async def test_model_override(self):
        """An explicit model wins over the settings default."""
        response = SimpleNamespace(data=[{"embedding": [1.0]}])
        with patch(
            "agentarea_workflows.resources.embeddings.litellm.aembedding",
            new_callable=AsyncMock,
            return_value=response,
        ) as mock_embedding:
            service = LiteLLMEmbeddingService(LLMSettings(), model="ollama/nomic-embed-text")
            await service.generate_embeddings(["a"])

        assert mock_embedding.await_args.kwargs["model"] == "ollama/nomic-embed-text"

    async def test_provider_failure(self):
        """Provider errors are raised as embedding failures."""
        with patch(
            "agentarea_workflows.resources.embeddings.litellm.aembedding",
            new_callable=AsyncMock,
            side_effect=Exception("invalid api key"),
        ):
            with pytest.raises(RuntimeError, match="generate embeddings: invalid api key"):
                await LiteLLMEmbeddingService(LLMSettings()).generate_embeddings(["a"])

    async def test_empty_input_skips_call(self):
        """No texts means no provider call."""
        with patch(
            "agentarea_workflows.resources.embeddings.litellm.aembedding",
            new_callable=AsyncMock,
        ) as mock_embedding:
            assert await LiteLLMEmbeddingService(LLMSettings()).generate_embeddings([]) == []
        mock_embedding.assert_not_awaited()


class TestSplitChunks:
    """Sentence chunking of documents."""

    def test_split_on_sentence_boundaries(self):
        """Documents split after terminal punctuation."""
        assert split_chunks("First one. Second one!  Third?") == [
            "First one.",
            "Second one!",
            "Third?",
        ]

    def test_blank_text(self):
        """Blank documents have no chunks."""
        assert split_chunks("   ") == []
