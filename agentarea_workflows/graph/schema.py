"""Schema of the declarative workflow description (YAML, JSON or mapping)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.enums import NodeKind
from ..exceptions import WorkflowDefinitionError


class AgentSpec(BaseModel):
    """Inline agent definition."""

    model_config = ConfigDict(extra="forbid")

    instructions: str = ""
    model: str | None = None
    tools: list[str] = Field(default_factory=list)
    description: str = ""
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)


class NodeSpec(BaseModel):
    """A node entry; ``agent`` is an agent name, ``name@version`` or an inline definition."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    kind: NodeKind
    agent: str | AgentSpec | None = None
    input: str | None = None
    output: str | None = None
    variables: dict[str, Any] = Field(default_factory=dict)
    description: str = ""


class EdgeSpec(BaseModel):
    """An edge entry; accepts ``from``/``to`` or ``source``/``target``."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    source: str = Field(..., alias="from")
    target: str = Field(..., alias="to")
    when: str | None = None


class WorkflowSpec(BaseModel):
    """Top-level workflow description."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    description: str = ""
    version: str | None = None
    entry: str = Field(..., min_length=1)
    variables: dict[str, Any] = Field(default_factory=dict)
    agents: dict[str, AgentSpec] = Field(default_factory=dict)
    nodes: list[NodeSpec] = Field(..., min_length=1)
    edges: list[EdgeSpec] = Field(default_factory=list)


def parse_description(data: Any) -> WorkflowSpec:
    """Validate raw description data.

    Raises:
        WorkflowDefinitionError: Listing every schema violation found
    """
    if not isinstance(data, dict):
        raise WorkflowDefinitionError(
            f"workflow description must be a mapping, got {type(data).__name__}"
        )
    try:
        return WorkflowSpec.model_validate(data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in error['loc']) or 'workflow'}: {error['msg']}"
            for error in e.errors()
        ]
        raise WorkflowDefinitionError(errors, workflow=data.get("name")) from e
