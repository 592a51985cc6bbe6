"""Versioned agent definitions shared by workflows."""

import logging

from ..domain.models import AgentDefinition
from ..exceptions import AgentNotFound

logger = logging.getLogger(__name__)


def parse_reference(reference: str) -> tuple[str, int | None]:
    """Split ``name`` or ``name@version`` into its parts.

    Raises:
        AgentNotFound: If the version part is not a positive integer
    """
    name, sep, version = reference.partition("@")
    if not sep:
        return name, None
    if not version.isdigit() or int(version) < 1:
        raise AgentNotFound(reference)
    return name, int(version)


class AgentCatalog:
    """Keeps every version of every agent definition.

    Registering an agent under an existing name with a different definition
    creates a new version; registering an identical definition returns the
    current latest version unchanged. Lookups return the latest version
    unless one is pinned with ``name@version``.
    """

    def __init__(self, agents: list[AgentDefinition] | None = None):
        self._versions: dict[str, list[AgentDefinition]] = {}
        for agent in agents or []:
            self.create_version(agent)

    def __contains__(self, reference: object) -> bool:
        if not isinstance(reference, str):
            return False
        try:
            self.get(reference)
        except AgentNotFound:
            return False
        return True

    @property
    def names(self) -> list[str]:
        return list(self._versions)

    def create_version(self, agent: AgentDefinition) -> AgentDefinition:
        """Store ``agent`` as the newest version of its name."""
        versions = self._versions.setdefault(agent.name, [])
        if versions and versions[-1].same_definition(agent):
            return versions[-1]

        stored = agent.model_copy(update={"version": len(versions) + 1})
        versions.append(stored)
        logger.info(f"Created agent {stored.name} version {stored.version}")
        return stored

    def get(self, reference: str, version: int | None = None) -> AgentDefinition:
        """Look up an agent by name, ``name@version`` or explicit version.

        Raises:
            AgentNotFound: If the name or the version does not exist
        """
        name, pinned = parse_reference(reference)
        version = version if version is not None else pinned
        versions = self._versions.get(name)
        if not versions:
            raise AgentNotFound(reference)
        if version is None:
            return versions[-1]
        if not 1 <= version <= len(versions):
            raise AgentNotFound(f"{name}@{version}")
        return versions[version - 1]

    def latest_version(self, name: str) -> int:
        """Number of the newest version of ``name``."""
        return self.get(name).version or 1

    def versions(self, name: str) -> list[AgentDefinition]:
        return list(self._versions.get(name, []))
