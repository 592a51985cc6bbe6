"""Agent catalog."""

from .catalog import AgentCatalog, parse_reference

__all__ = ["AgentCatalog", "parse_reference"]
