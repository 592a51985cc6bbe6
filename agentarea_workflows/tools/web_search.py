"""Web search against a configurable HTTP endpoint."""

import logging
from typing import Any, ClassVar

import httpx

from ..domain.enums import ToolCapability
from ..domain.interfaces import ToolContext, ToolHandler
from ..domain.models import ToolResult
from .configs import WebSearchConfig

logger = logging.getLogger(__name__)


class WebSearchTool(ToolHandler):
    """Queries ``config.endpoint`` with ``?q=<query>&limit=<n>``.

    The endpoint must answer with ``{"results": [{"title", "url", "snippet"}]}``.
    """

    capability: ClassVar[ToolCapability] = ToolCapability.WEB_SEARCH

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport

    def parameters(self, config: WebSearchConfig) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query"},
            },
            "required": ["query"],
        }

    async def execute(
        self, config: WebSearchConfig, arguments: dict[str, Any], context: ToolContext
    ) -> ToolResult:
        query = arguments.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ValueError("'query' must be a non-empty string")

        headers = {"Accept": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"

        async with httpx.AsyncClient(
            transport=self._transport, timeout=config.timeout_seconds
        ) as client:
            response = await client.get(
                config.endpoint,
                params={"q": query, "limit": config.max_results},
                headers=headers,
            )
            response.raise_for_status()
            payload = response.json()

        results = [
            {
                "title": str(item.get("title", "")),
                "url": str(item.get("url", "")),
                "snippet": str(item.get("snippet", "")),
            }
            for item in payload.get("results", [])[: config.max_results]
            if isinstance(item, dict)
        ]
        logger.debug(f"Web search for '{query}' returned {len(results)} results")

        if not results:
            return ToolResult(content="No results found.", data={"results": []})

        content = "\n\n".join(
            f"{i}. {r['title']}\n{r['url']}\n{r['snippet']}" for i, r in enumerate(results, 1)
        )
        return ToolResult(
            content=content,
            data={"results": results},
            citations=[r["url"] for r in results if r["url"]],
        )
