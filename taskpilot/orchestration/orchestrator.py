"""
Orchestrator: wires the completion service, tool routers and sub-agents
behind a single run(query) entry point.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..memory.store import MemoryStore
from .planner import Planner
from .reasoning_loop import ReasoningAgent
from .registry import AgentRegistry

if TYPE_CHECKING:
    from ..config.loader import (
        CompletionConfig,
        MemoryConfig,
        PlannerConfig,
        ReasoningConfig,
    )
    from ..llm.protocols import CompletionService
    from ..tools.protocols import ToolProvider
    from .protocols import SubAgent

logger = logging.getLogger(__name__)


@dataclass
class AgentSpec:
    """Everything needed to build one reasoning sub-agent."""

    name: str
    description: str
    backends: list[ToolProvider] = field(default_factory=list)
    reasoning: ReasoningConfig | None = None
    completion: CompletionService | None = None  # defaults to the orchestrator's


class Orchestrator:
    """
    Entry point for answering queries.

    Receives already-constructed collaborators. A memory store passed in may
    be shared by several orchestrators or concurrent runs.
    """

    def __init__(
        self,
        completion: CompletionService,
        agents: list[SubAgent],
        memory: MemoryStore | None = None,
        planner_config: PlannerConfig | None = None,
        memory_config: MemoryConfig | None = None,
        completion_config: CompletionConfig | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            completion: Completion service used by the planner
            agents: Sub-agents; names must be unique ignoring case
            memory: Memory store (a new one is built from memory_config if None)
            planner_config: Planner configuration
            memory_config: Memory capacities and retrieval limits
            completion_config: Sampling settings for planning calls

        Raises:
            ValueError: If two agents share a name
        """
        if memory_config is None:
            from ..config.loader import MemoryConfig
            memory_config = MemoryConfig()

        if memory is None:
            memory = MemoryStore(
                recent_capacity=memory_config.recent_capacity,
                durable_capacity=memory_config.durable_capacity,
            )

        self.completion = completion
        self.memory = memory
        self.agents = AgentRegistry(agents)

        planner_kwargs = {}
        if completion_config is not None:
            planner_kwargs = {
                "temperature": completion_config.temperature,
                "max_tokens": completion_config.max_tokens,
            }

        self.planner = Planner(
            completion=completion,
            memory=memory,
            agents=self.agents,
            config=planner_config,
            memory_config=memory_config,
            **planner_kwargs,
        )
        logger.info(f"Orchestrator ready with agents: {', '.join(self.agents.names) or '(none)'}")

    @classmethod
    async def create(
        cls,
        completion: CompletionService,
        agent_specs: list[AgentSpec],
        memory: MemoryStore | None = None,
        planner_config: PlannerConfig | None = None,
        memory_config: MemoryConfig | None = None,
        completion_config: CompletionConfig | None = None,
        reasoning_config: ReasoningConfig | None = None,
    ) -> Orchestrator:
        """
        Build a tool router per sub-agent and construct the orchestrator.

        Args:
            completion: Default completion service
            agent_specs: Sub-agents to build
            memory: Optional shared memory store
            planner_config: Planner configuration
            memory_config: Memory configuration
            completion_config: Sampling settings for planning calls
            reasoning_config: Default reasoning configuration for agents
                without their own

        Returns:
            Ready Orchestrator
        """
        names = [spec.name.lower() for spec in agent_specs]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate agent names: {', '.join(duplicates)}")

        agents = []
        for spec in agent_specs:
            agent = await ReasoningAgent.create(
                name=spec.name,
                description=spec.description,
                completion=spec.completion or completion,
                backends=spec.backends,
                config=spec.reasoning or reasoning_config,
            )
            agents.append(agent)

        return cls(
            completion=completion,
            agents=agents,
            memory=memory,
            planner_config=planner_config,
            memory_config=memory_config,
            completion_config=completion_config,
        )

    async def run(self, query: str, cancel: asyncio.Event | None = None) -> str:
        """
        Answer a query.

        Args:
            query: Natural-language query
            cancel: Optional cancellation signal

        Returns:
            Final answer or the planner's exhaustion summary

        Raises:
            CompletionServiceError: If the completion service is unreachable
            asyncio.CancelledError: If cancelled while running
        """
        if not query or not query.strip():
            raise ValueError("Query must not be empty")

        return await self.planner.create_plan_and_execute(query, cancel)

    def run_sync(self, query: str) -> str:
        """Blocking wrapper around run() for callers without an event loop."""
        return asyncio.run(self.run(query))
