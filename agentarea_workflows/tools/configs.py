"""Validated configuration for each tool capability.

Tool behavior is selected by the ``capability`` tag, never by inspecting
loosely typed settings. Every capability has its own config model and the
union below is discriminated on that tag.
"""

import re
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.enums import ToolCapability
from ..domain.interfaces import ToolHandler

TOOL_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


class FileSearchConfig(BaseModel):
    """Search over a vector store materialized from ``source_ref``."""

    model_config = ConfigDict(frozen=True)

    capability: Literal[ToolCapability.FILE_SEARCH] = ToolCapability.FILE_SEARCH
    source_ref: str = Field(..., min_length=1)
    max_results: int = Field(default=5, ge=1, le=50)


class CodeInterpreterConfig(BaseModel):
    """Run Python code in an isolated subprocess."""

    model_config = ConfigDict(frozen=True)

    capability: Literal[ToolCapability.CODE_INTERPRETER] = ToolCapability.CODE_INTERPRETER
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_output_chars: int = Field(default=10_000, ge=100)


class WebSearchConfig(BaseModel):
    """Query an HTTP search endpoint returning ``{"results": [...]}``."""

    model_config = ConfigDict(frozen=True)

    capability: Literal[ToolCapability.WEB_SEARCH] = ToolCapability.WEB_SEARCH
    endpoint: str = Field(..., min_length=1)
    api_key: str | None = None
    max_results: int = Field(default=5, ge=1, le=50)
    timeout_seconds: float = Field(default=15.0, gt=0)


class VisionConfig(BaseModel):
    """Describe images through a multimodal reasoning backend."""

    model_config = ConfigDict(frozen=True)

    capability: Literal[ToolCapability.VISION] = ToolCapability.VISION
    model: str | None = None
    prompt: str = "Describe this image in detail."
    max_image_bytes: int = Field(default=10 * 1024 * 1024, ge=1)


class CustomFunctionConfig(BaseModel):
    """A caller-provided function with an explicit JSON schema."""

    model_config = ConfigDict(frozen=True)

    capability: Literal[ToolCapability.CUSTOM_FUNCTION] = ToolCapability.CUSTOM_FUNCTION
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )


ToolConfig = Annotated[
    FileSearchConfig
    | CodeInterpreterConfig
    | WebSearchConfig
    | VisionConfig
    | CustomFunctionConfig,
    Field(discriminator="capability"),
]


class ToolDescriptor(BaseModel):
    """A registered tool: id, description, capability config and handler."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tool_id: str
    description: str = ""
    config: ToolConfig
    handler: ToolHandler

    @field_validator("tool_id")
    @classmethod
    def validate_tool_id(cls, v: str) -> str:
        """Tool ids double as function names on the backend."""
        if not TOOL_ID_PATTERN.match(v):
            raise ValueError(
                f"Invalid tool id '{v}': use 1-64 letters, digits, underscores or hyphens"
            )
        return v

    @property
    def capability(self) -> ToolCapability:
        return self.config.capability

    def definition(self) -> dict[str, Any]:
        """OpenAI-style function definition for the reasoning backend."""
        return {
            "type": "function",
            "function": {
                "name": self.tool_id,
                "description": self.description or f"{self.capability.value} tool",
                "parameters": self.handler.parameters(self.config),
            },
        }
