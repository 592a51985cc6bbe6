"""Image understanding through a multimodal reasoning backend."""

import base64
import binascii
import logging
from typing import Any, ClassVar

import httpx

from ..domain.enums import ToolCapability
from ..domain.interfaces import ReasoningBackend, ToolContext, ToolHandler
from ..domain.models import AgentDefinition, BinaryPart, Message, ToolResult
from .configs import VisionConfig

logger = logging.getLogger(__name__)

VISION_INSTRUCTIONS = "You describe images accurately and only state what is visible."


def parse_data_uri(uri: str) -> BinaryPart:
    """Decode a ``data:<media>;base64,<payload>`` URI."""
    header, _, payload = uri.partition(",")
    if not header.startswith("data:") or ";base64" not in header or not payload:
        raise ValueError("Only base64 data URIs are supported")
    media_type = header[len("data:") :].split(";", 1)[0] or "application/octet-stream"
    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    return BinaryPart(media_type=media_type, data=data)


class VisionTool(ToolHandler):
    """Fetches an image and asks the backend to describe it."""

    capability: ClassVar[ToolCapability] = ToolCapability.VISION

    def __init__(
        self, backend: ReasoningBackend, transport: httpx.AsyncBaseTransport | None = None
    ):
        self.backend = backend
        self._transport = transport

    def parameters(self, config: VisionConfig) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "image_url": {
                    "type": "string",
                    "description": "http(s) URL or base64 data URI of the image",
                },
                "question": {
                    "type": "string",
                    "description": "What to find out about the image",
                },
            },
            "required": ["image_url"],
        }

    async def execute(
        self, config: VisionConfig, arguments: dict[str, Any], context: ToolContext
    ) -> ToolResult:
        image_url = arguments.get("image_url")
        if not isinstance(image_url, str) or not image_url:
            raise ValueError("'image_url' must be a non-empty string")

        image = await self._load_image(image_url, config)
        if len(image.data) > config.max_image_bytes:
            raise ValueError(f"Image exceeds {config.max_image_bytes} bytes")

        question = arguments.get("question") or config.prompt
        agent = AgentDefinition(
            name=f"{context.agent_name}-vision",
            instructions=VISION_INSTRUCTIONS,
            model=config.model,
        )
        messages = (
            Message.system(VISION_INSTRUCTIONS),
            Message.user(question, attachments=[image]),
        )
        response = await self.backend.complete(messages, agent, [])
        return ToolResult(
            content=response.text,
            data={"media_type": image.media_type, "bytes": len(image.data)},
        )

    async def _load_image(self, image_url: str, config: VisionConfig) -> BinaryPart:
        if image_url.startswith("data:"):
            return parse_data_uri(image_url)
        if not image_url.startswith(("http://", "https://")):
            raise ValueError("image_url must be an http(s) URL or a data URI")

        async with httpx.AsyncClient(transport=self._transport, timeout=30.0) as client:
            response = await client.get(image_url, follow_redirects=True)
            response.raise_for_status()

        media_type = response.headers.get("content-type", "").split(";", 1)[0].strip()
        if not media_type.startswith("image/"):
            raise ValueError(f"URL did not return an image (content-type: {media_type or '?'})")
        return BinaryPart(media_type=media_type, data=response.content)
