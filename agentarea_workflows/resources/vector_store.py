"""Searchable document collections backing the file search tool."""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import faiss
import numpy as np

from .embeddings import EmbeddingService

logger = logging.getLogger(__name__)

_SENTENCE = re.compile(r"(?<=[.!?])\s+")
MAX_SNIPPET_CHARS = 300


def split_chunks(text: str) -> list[str]:
    """Split a document into sentence chunks, each indexed on its own."""
    return [s.strip() for s in _SENTENCE.split(text.strip()) if s.strip()]


@dataclass(frozen=True)
class Document:
    """A document indexed into a vector store."""

    id: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchHit:
    """One search result, always pointing at an indexed document."""

    document_id: str
    score: float
    snippet: str


class VectorStore(ABC):
    """Indexed, searchable collection of documents."""

    @property
    @abstractmethod
    def document_ids(self) -> list[str]:
        """Ids of all indexed documents."""

    @abstractmethod
    async def search(self, query: str, limit: int = 5) -> list[SearchHit]:
        """Return the documents most similar to ``query``, best first."""


class FaissVectorStore(VectorStore):
    """Inner-product FAISS index over L2-normalized embeddings.

    Every sentence chunk of a document gets its own vector; ``metadata``
    maps index positions back to the document and chunk text, so a hit can
    only ever refer to a document that was indexed here. Scores are cosine
    similarities; chunks scoring at or below ``min_score`` are dropped.
    """

    def __init__(
        self, store_id: str, embedding_service: EmbeddingService, min_score: float = 0.0
    ):
        self.store_id = store_id
        self.embedding_service = embedding_service
        self.min_score = min_score
        self.index: faiss.Index | None = None
        self.metadata: dict[int, dict[str, str]] = {}
        self._documents: dict[str, Document] = {}

    @property
    def document_ids(self) -> list[str]:
        return list(self._documents)

    def get(self, document_id: str) -> Document:
        return self._documents[document_id]

    async def add_documents(self, documents: list[Document]) -> int:
        """Embed and index ``documents``.

        Returns:
            Number of chunks added to the index

        Raises:
            ValueError: If the embedding service returns vectors of the wrong shape
        """
        chunks = [(doc.id, chunk) for doc in documents for chunk in split_chunks(doc.text)]
        for doc in documents:
            self._documents[doc.id] = doc
        if not chunks:
            return 0

        embeddings = await self.embedding_service.generate_embeddings([c for _, c in chunks])
        matrix = np.array(embeddings, dtype=np.float32)
        if matrix.ndim != 2 or matrix.shape[0] != len(chunks):
            raise ValueError(
                f"Expected {len(chunks)} embeddings, got an array of shape {matrix.shape}"
            )
        faiss.normalize_L2(matrix)

        if self.index is None:
            self.index = faiss.IndexFlatIP(matrix.shape[1])
        elif self.index.d != matrix.shape[1]:
            raise ValueError(
                f"Embedding dimension {matrix.shape[1]} does not match index dimension "
                f"{self.index.d}"
            )

        start = self.index.ntotal
        self.index.add(matrix)
        for offset, (doc_id, chunk) in enumerate(chunks):
            self.metadata[start + offset] = {"document_id": doc_id, "text": chunk}

        logger.debug(f"Indexed {len(chunks)} chunks into {self.store_id}")
        return len(chunks)

    async def search(self, query: str, limit: int = 5) -> list[SearchHit]:
        if self.index is None or self.index.ntotal == 0 or not query.strip():
            return []

        query_embeddings = await self.embedding_service.generate_embeddings([query])
        query_vector = np.array(query_embeddings[0], dtype=np.float32).reshape(1, -1)
        if not np.any(query_vector):
            return []
        faiss.normalize_L2(query_vector)

        # Several chunks may belong to one document; search them all and keep the best
        scores, indices = self.index.search(query_vector, self.index.ntotal)

        hits: list[SearchHit] = []
        seen: set[str] = set()
        for score, idx in zip(scores[0], indices[0], strict=False):
            if idx == -1:
                break
            if score <= self.min_score:
                continue
            chunk_meta = self.metadata.get(int(idx))
            if chunk_meta is None or chunk_meta["document_id"] in seen:
                continue

            seen.add(chunk_meta["document_id"])
            hits.append(
                SearchHit(
                    document_id=chunk_meta["document_id"],
                    score=round(float(score), 4),
                    snippet=_snippet(chunk_meta["text"]),
                )
            )
            if len(hits) >= limit:
                break
        return hits


def _snippet(text: str) -> str:
    if len(text) <= MAX_SNIPPET_CHARS:
        return text
    return text[: MAX_SNIPPET_CHARS - 3] + "..."
