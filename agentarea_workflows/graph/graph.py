"""Validated, immutable representation of a workflow."""

import logging
from collections import deque
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from ..domain.enums import NodeKind
from ..domain.models import WorkflowEdge, WorkflowNode
from ..exceptions import ExpressionError, WorkflowDefinitionError
from .expressions import Expression, compile_expression, template_references

if TYPE_CHECKING:
    from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

RESERVED_NAMES = frozenset({"input"})


class WorkflowGraph:
    """Nodes and predicate-guarded edges of one workflow.

    The graph is a reusable blueprint: it never carries execution state, and
    its nodes, edges and compiled predicates are read-only after
    construction. Cycles are allowed; the runner bounds them.
    """

    def __init__(
        self,
        name: str,
        entry: str,
        nodes: Iterable[WorkflowNode],
        edges: Iterable[WorkflowEdge] = (),
        variables: Mapping[str, Any] | None = None,
        description: str = "",
    ):
        self.name = name
        self.entry = entry
        self.description = description
        self._variables = MappingProxyType(dict(variables or {}))
        self._problems: list[str] = []

        nodes_by_id: dict[str, WorkflowNode] = {}
        for node in nodes:
            if node.id in nodes_by_id:
                self._problems.append(f"duplicate node id '{node.id}'")
                continue
            nodes_by_id[node.id] = node
        self._nodes = MappingProxyType(nodes_by_id)
        self._edges = tuple(edges)

        outgoing: dict[str, list[WorkflowEdge]] = {node_id: [] for node_id in nodes_by_id}
        for edge in self._edges:
            outgoing.setdefault(edge.source, []).append(edge)
        self._outgoing = {node_id: tuple(found) for node_id, found in outgoing.items()}

        self._predicates: dict[int, Expression] = {}
        for edge in self._edges:
            if not edge.is_conditional:
                continue
            try:
                self._predicates[id(edge)] = compile_expression(edge.when or "")
            except ExpressionError as e:
                self._problems.append(f"edge {edge.source} -> {edge.target}: {e.message}")

    def __repr__(self) -> str:
        return (
            f"WorkflowGraph(name={self.name!r}, nodes={len(self._nodes)}, "
            f"edges={len(self._edges)})"
        )

    @property
    def nodes(self) -> tuple[WorkflowNode, ...]:
        return tuple(self._nodes.values())

    @property
    def edges(self) -> tuple[WorkflowEdge, ...]:
        return self._edges

    @property
    def variables(self) -> Mapping[str, Any]:
        """Workflow-level variables, visible to every predicate and template."""
        return self._variables

    def node(self, node_id: str) -> WorkflowNode:
        """Return a node by id.

        Raises:
            KeyError: If the node does not exist
        """
        return self._nodes[node_id]

    def outgoing(self, node_id: str) -> tuple[WorkflowEdge, ...]:
        """Outgoing edges of a node in declaration order."""
        return self._outgoing.get(node_id, ())

    def predicate(self, edge: WorkflowEdge) -> Expression | None:
        """Compiled predicate of an edge, or None for an unconditional edge."""
        if not any(candidate is edge for candidate in self._edges):
            raise KeyError(f"Edge {edge.source} -> {edge.target} is not part of {self.name}")
        return self._predicates.get(id(edge))

    def declared_names(self, node_id: str) -> frozenset[str]:
        """Root names a predicate or template attached to ``node_id`` may read."""
        node = self._nodes.get(node_id)
        local = set(node.variables) if node is not None else set()
        return frozenset({*self._nodes, *RESERVED_NAMES, *self._variables, *local})

    def validate(self, registry: "ToolRegistry | None" = None) -> list[str]:
        """Collect every structural problem of the graph.

        Args:
            registry: When given, agent tool ids must be registered in it

        Returns:
            Problem descriptions; empty when the graph is valid
        """
        problems = list(self._problems)
        node_ids = set(self._nodes)

        for name in self._variables:
            if name in node_ids or name in RESERVED_NAMES:
                problems.append(f"workflow variable '{name}' shadows a node id or reserved name")

        if self.entry not in self._nodes:
            problems.append(f"entry node '{self.entry}' does not exist")

        for edge in self._edges:
            if edge.source not in self._nodes:
                problems.append(f"edge {edge.source} -> {edge.target}: unknown source node")
            if edge.target not in self._nodes:
                problems.append(f"edge {edge.source} -> {edge.target}: unknown target node")

        for node in self._nodes.values():
            problems.extend(self._node_problems(node, registry))

        for edge in self._edges:
            expression = self._predicates.get(id(edge))
            if expression is None:
                continue
            undeclared = expression.root_names - self.declared_names(edge.source)
            if undeclared:
                problems.append(
                    f"edge {edge.source} -> {edge.target}: predicate references "
                    f"undeclared name(s) {sorted(undeclared)}"
                )

        if self.entry in self._nodes:
            unreachable = node_ids - self._reachable_from(self.entry)
            for node_id in sorted(unreachable):
                problems.append(f"node '{node_id}' is unreachable from entry '{self.entry}'")

        return problems

    def ensure_valid(self, registry: "ToolRegistry | None" = None) -> "WorkflowGraph":
        """Validate the graph, raising when any problem is found.

        Raises:
            WorkflowDefinitionError: Listing every problem found
        """
        problems = self.validate(registry)
        if problems:
            raise WorkflowDefinitionError(problems, workflow=self.name)
        logger.debug(f"Workflow {self.name} validated ({len(self._nodes)} nodes)")
        return self

    def _node_problems(self, node: WorkflowNode, registry: "ToolRegistry | None") -> list[str]:
        problems = []
        outgoing = self.outgoing(node.id)

        if node.kind == NodeKind.AGENT:
            if node.agent is None:
                ref = f" '{node.agent_ref}'" if node.agent_ref else ""
                problems.append(f"agent node '{node.id}' references unknown agent{ref}")
            elif registry is not None:
                for tool_id in node.agent.tools:
                    if tool_id not in registry:
                        problems.append(
                            f"agent '{node.agent.name}' of node '{node.id}' "
                            f"references unknown tool '{tool_id}'"
                        )
        elif node.agent is not None or node.agent_ref:
            problems.append(f"{node.kind.value} node '{node.id}' cannot reference an agent")

        if node.output is not None and node.kind != NodeKind.TERMINAL:
            problems.append(f"only terminal nodes may declare an output ('{node.id}')")

        for name in node.variables:
            if name in self._nodes or name in RESERVED_NAMES:
                problems.append(f"variable '{name}' of node '{node.id}' shadows a node id")

        for text in (node.input, node.output):
            if not text:
                continue
            try:
                paths = template_references(text)
            except ExpressionError as e:
                problems.append(f"node '{node.id}': {e.reason}")
                continue
            undeclared = {path[0] for path in paths} - self.declared_names(node.id)
            if undeclared:
                problems.append(
                    f"node '{node.id}': template references undeclared name(s) {sorted(undeclared)}"
                )

        if node.kind == NodeKind.TERMINAL:
            if outgoing:
                problems.append(f"terminal node '{node.id}' has outgoing edges")
            return problems

        if not outgoing:
            problems.append(f"{node.kind.value} node '{node.id}' has no outgoing edge")
        elif all(self._never_true(edge) for edge in outgoing):
            problems.append(f"{node.kind.value} node '{node.id}' has no edge that can be taken")
        return problems

    def _never_true(self, edge: WorkflowEdge) -> bool:
        if not edge.is_conditional:
            return False
        expression = self.predicate(edge)
        if expression is None:
            # Unparseable, already reported
            return True
        if not expression.is_constant:
            return False
        try:
            return not expression.evaluate({})
        except ExpressionError:
            return True

    def _reachable_from(self, start: str) -> set[str]:
        seen = {start}
        queue = deque([start])
        while queue:
            for edge in self.outgoing(queue.popleft()):
                if edge.target in self._nodes and edge.target not in seen:
                    seen.add(edge.target)
                    queue.append(edge.target)
        return seen
