"""Workflow graphs: description schema, loader, predicates and validation."""

from .expressions import Expression, compile_expression, render_template
from .graph import WorkflowGraph
from .loader import build_graph, load_workflow, read_description
from .schema import WorkflowSpec, parse_description

__all__ = [
    "Expression",
    "WorkflowGraph",
    "WorkflowSpec",
    "build_graph",
    "compile_expression",
    "load_workflow",
    "parse_description",
    "read_description",
    "render_template",
]
