"""Registry of named sub-agents available to the planner."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Iterator

if TYPE_CHECKING:
    from .protocols import SubAgent

logger = logging.getLogger(__name__)


class AgentRegistry:
    """
    Name to sub-agent mapping, built once at startup.

    Lookups are case-insensitive. Registering two agents whose names differ
    only in case is rejected.
    """

    def __init__(self, agents: Iterable[SubAgent] = ()):
        self._agents: dict[str, SubAgent] = {}
        for agent in agents:
            self.add(agent)

    def add(self, agent: SubAgent) -> None:
        key = agent.name.lower()
        if key in self._agents:
            raise ValueError(f"Duplicate agent name: '{agent.name}'")
        self._agents[key] = agent
        logger.debug(f"Registered agent {agent.name}")

    def get(self, name: str) -> SubAgent | None:
        """Find an agent by name, ignoring case."""
        return self._agents.get((name or "").strip().lower())

    @property
    def names(self) -> list[str]:
        """Registered agent names in registration order."""
        return [agent.name for agent in self._agents.values()]

    def describe(self) -> str:
        """Agent list for the planning prompt."""
        if not self._agents:
            return "No agents available."
        return "\n".join(
            f"- {agent.name}: {agent.description}" for agent in self._agents.values()
        )

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[SubAgent]:
        return iter(self._agents.values())

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None
