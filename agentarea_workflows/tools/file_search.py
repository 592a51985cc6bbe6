"""File search over a bound vector store."""

import logging
from typing import Any, ClassVar

from ..domain.enums import ToolCapability
from ..domain.interfaces import ToolContext, ToolHandler
from ..domain.models import ToolResult
from ..resources.providers import VectorStoreProvider
from .configs import FileSearchConfig

logger = logging.getLogger(__name__)


class FileSearchTool(ToolHandler):
    """Searches the vector store materialized for the tool's ``source_ref``.

    Results only ever cite documents that were indexed into that store, so
    answers built on them stay grounded in the source.
    """

    capability: ClassVar[ToolCapability] = ToolCapability.FILE_SEARCH

    def __init__(self, provider: VectorStoreProvider):
        self.provider = provider

    def parameters(self, config: FileSearchConfig) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "What to look for in the documents"},
            },
            "required": ["query"],
        }

    async def execute(
        self, config: FileSearchConfig, arguments: dict[str, Any], context: ToolContext
    ) -> ToolResult:
        query = arguments.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ValueError("'query' must be a non-empty string")

        handle = context.resources.get(config.source_ref)
        if handle is None or not handle.is_ready:
            raise RuntimeError(f"Vector store for '{config.source_ref}' is not bound")

        store = self.provider.get_vector_store(handle.id)
        hits = await store.search(query, limit=config.max_results)
        logger.debug(f"File search for '{query}' returned {len(hits)} hits from {handle.id}")

        if not hits:
            return ToolResult(content="No matching documents found.", data={"results": []})

        lines = [f"[{hit.document_id}] {hit.snippet}" for hit in hits]
        return ToolResult(
            content="\n".join(lines),
            data={
                "vector_store_id": handle.id,
                "results": [
                    {"document_id": h.document_id, "score": h.score, "snippet": h.snippet}
                    for h in hits
                ],
            },
            citations=[hit.document_id for hit in hits],
        )
