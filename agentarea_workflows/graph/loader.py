"""Load workflow descriptions into validated graphs."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from ..agents.catalog import AgentCatalog
from ..domain.models import AgentDefinition, WorkflowEdge, WorkflowNode
from ..exceptions import AgentNotFound, WorkflowDefinitionError
from .graph import WorkflowGraph
from .schema import AgentSpec, WorkflowSpec, parse_description

if TYPE_CHECKING:
    from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

_DESCRIPTION_SUFFIXES = (".yaml", ".yml", ".json")


def read_description(source: str | Path | Mapping[str, Any]) -> dict[str, Any]:
    """Read raw description data from a path, YAML/JSON text or a mapping.

    Raises:
        WorkflowDefinitionError: If the file cannot be read or parsed
    """
    if isinstance(source, Mapping):
        return dict(source)

    text: str
    if isinstance(source, Path) or (
        "\n" not in source and source.strip().endswith(_DESCRIPTION_SUFFIXES)
    ):
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise WorkflowDefinitionError(f"cannot read {path}: {e}") from e
    else:
        text = source

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkflowDefinitionError(f"invalid YAML: {e}") from e
    if data is None:
        raise WorkflowDefinitionError("workflow description is empty")
    return data


def _inline_agent(name: str, spec: AgentSpec) -> AgentDefinition:
    return AgentDefinition(
        name=name,
        instructions=spec.instructions,
        model=spec.model,
        tools=tuple(spec.tools),
        description=spec.description,
        temperature=spec.temperature,
        max_tokens=spec.max_tokens,
    )


def build_graph(spec: WorkflowSpec, catalog: AgentCatalog | None = None) -> WorkflowGraph:
    """Turn a parsed description into a graph, resolving agent references.

    Named agents are looked up in the description's ``agents`` section first
    and in ``catalog`` second. Unresolvable references are left for
    ``WorkflowGraph.validate`` to report together with every other problem.
    """
    agents = {name: _inline_agent(name, agent_spec) for name, agent_spec in spec.agents.items()}

    nodes = []
    for node_spec in spec.nodes:
        agent: AgentDefinition | None = None
        agent_ref: str | None = None
        if isinstance(node_spec.agent, AgentSpec):
            agent = _inline_agent(node_spec.id, node_spec.agent)
        elif isinstance(node_spec.agent, str):
            agent_ref = node_spec.agent
            agent = agents.get(agent_ref)
            if agent is None and catalog is not None:
                try:
                    agent = catalog.get(agent_ref)
                except AgentNotFound:
                    agent = None

        nodes.append(
            WorkflowNode(
                id=node_spec.id,
                kind=node_spec.kind,
                agent=agent,
                agent_ref=agent_ref,
                variables=node_spec.variables,
                input=node_spec.input,
                output=node_spec.output,
                description=node_spec.description,
            )
        )

    edges = [
        WorkflowEdge(source=edge.source, target=edge.target, when=edge.when) for edge in spec.edges
    ]
    return WorkflowGraph(
        name=spec.name,
        entry=spec.entry,
        nodes=nodes,
        edges=edges,
        variables=spec.variables,
        description=spec.description,
    )


def load_workflow(
    source: str | Path | Mapping[str, Any],
    registry: "ToolRegistry | None" = None,
    catalog: AgentCatalog | None = None,
) -> WorkflowGraph:
    """Load and validate a workflow description.

    Args:
        source: Path to a YAML/JSON file, YAML/JSON text, or an already parsed mapping
        registry: When given, every agent tool must be registered in it
        catalog: Agent catalog used for agent references not defined inline

    Returns:
        A validated WorkflowGraph

    Raises:
        WorkflowDefinitionError: Listing every problem found in the description
    """
    spec = parse_description(read_description(source))
    graph = build_graph(spec, catalog=catalog).ensure_valid(registry)
    logger.info(
        f"Loaded workflow {graph.name} with {len(graph.nodes)} nodes and {len(graph.edges)} edges"
    )
    return graph
