"""Workflow runner."""

from .context import ExecutionContext
from .factory import WorkflowFactory
from .runner import WorkflowRunner

__all__ = ["ExecutionContext", "WorkflowFactory", "WorkflowRunner"]
