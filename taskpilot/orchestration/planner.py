"""
Planner: the top-level control loop.

Each iteration retrieves memories, asks the completion service for the next
step and dispatches it to a named sub-agent. Every outcome is recorded into
the execution history and the memory store.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING

from ..llm.protocols import CompletionServiceError
from ..memory.models import MemoryKind
from .cancellation import raise_if_cancelled, run_cancellable
from .models import ExecutionHistory
from .parsing import StepParseError, parse_plan_step
from .prompts import PLANNER_SYSTEM_PROMPT, render_planner_prompt

if TYPE_CHECKING:
    from ..config.loader import MemoryConfig, PlannerConfig
    from ..llm.protocols import CompletionService
    from ..memory.store import MemoryStore
    from .models import PlanStep
    from .registry import AgentRegistry

logger = logging.getLogger(__name__)


class Planner:
    """
    Bounded planning loop over a registry of sub-agents.

    Terminal outcomes are the planner's final answer (Resolved) or an
    exhaustion summary of the full history (Exhausted). Sub-agent failures
    and unknown agent names never end the loop; a second consecutive parse
    failure does.
    """

    name = "PlannerAgent"

    def __init__(
        self,
        completion: CompletionService,
        memory: MemoryStore,
        agents: AgentRegistry,
        config: PlannerConfig | None = None,
        memory_config: MemoryConfig | None = None,
        temperature: float = 0.1,
        max_tokens: int | None = 500,
    ):
        """
        Initialize the planner.

        Args:
            completion: Completion service used for planning
            memory: Memory store shared across runs
            agents: Registry of sub-agents
            config: Planner configuration
            memory_config: Retrieval limits
            temperature: Sampling temperature for planning calls
            max_tokens: Token limit for planning calls
        """
        self.completion = completion
        self.memory = memory
        self.agents = agents
        self.temperature = temperature
        self.max_tokens = max_tokens

        if config is None:
            from ..config.loader import PlannerConfig
            config = PlannerConfig()
        if memory_config is None:
            from ..config.loader import MemoryConfig
            memory_config = MemoryConfig()

        self.max_iterations = config.max_iterations
        self.max_consecutive_parse_failures = config.max_consecutive_parse_failures
        self.max_recent = memory_config.max_recent
        self.max_durable = memory_config.max_durable

    async def create_plan_and_execute(
        self,
        query: str,
        cancel: asyncio.Event | None = None,
    ) -> str:
        """
        Plan and execute steps until a final answer or the iteration budget.

        Args:
            query: The user's query
            cancel: Optional cancellation signal

        Returns:
            The final answer, or an exhaustion summary of the execution history

        Raises:
            CompletionServiceError: If the completion service is unreachable
            asyncio.CancelledError: If cancelled while running
        """
        logger.info(f"[{self.name}] Received query: \"{query}\"")
        history = ExecutionHistory()
        query_tags = {"query": query[:30]}
        consecutive_parse_failures = 0

        for i in range(self.max_iterations):
            raise_if_cancelled(cancel)
            logger.info(f"[{self.name}] Planning iteration {i + 1}")

            memories = self.memory.retrieve(
                query + " " + history.joined(" "),
                max_recent=self.max_recent,
                max_durable=self.max_durable,
            )
            prompt = render_planner_prompt(
                query=query,
                agents=self.agents.describe(),
                memories=self.memory.format(memories),
                history=history.joined("\n"),
            )

            try:
                response = await run_cancellable(
                    self.completion.complete(
                        prompt,
                        system_prompt=PLANNER_SYSTEM_PROMPT,
                        temperature=self.temperature,
                        max_tokens=self.max_tokens,
                        response_format="json_object",
                    ),
                    cancel,
                )
            except CompletionServiceError as e:
                error_msg = f"Error: Completion service failed during planning: {e}"
                logger.error(f"[{self.name}] {error_msg}")
                history.append(error_msg)
                self.memory.add(error_msg, MemoryKind.PLANNER_ERROR, self.name, query_tags)
                raise

            logger.debug(f"[{self.name}] Raw response: {response}")

            try:
                step = parse_plan_step(response)
            except StepParseError as e:
                consecutive_parse_failures += 1
                error_msg = f"Error: Failed to parse LLM plan step. LLM Output: {response}. Error: {e}"
                logger.warning(f"[{self.name}] {error_msg}")
                history.append(error_msg)
                self.memory.add(error_msg, MemoryKind.PLANNER_ERROR, self.name, query_tags)
                if consecutive_parse_failures >= self.max_consecutive_parse_failures:
                    logger.warning(
                        f"[{self.name}] {consecutive_parse_failures} consecutive parse "
                        f"failures, ending planning loop"
                    )
                    break
                continue

            consecutive_parse_failures = 0
            history.append(f"Planner Step {i + 1} Thought: {step.reasoning}")
            self.memory.add(step.reasoning, MemoryKind.PLANNER_REASONING, self.name, query_tags)
            logger.info(
                f"[{self.name}] Parsed plan step - Agent: {step.agent_to_call}, "
                f"Task: {step.task_for_agent}, Final: {step.is_final_step}"
            )

            if step.is_final_step:
                final_answer = step.resolved_final_answer
                history.append(f"Final Answer from Planner: {final_answer}")
                self.memory.add(
                    final_answer, MemoryKind.FINAL_ANSWER, self.name, query_tags, promote=True
                )
                logger.info(f"[{self.name}] Plan complete. Final answer: {final_answer}")
                return final_answer

            await self._dispatch(step, history, cancel)

        summary = (
            f"[{self.name}] Max planning iterations reached for query '{query}'. "
            f"Unable to fully resolve. Final History:\n{history.joined()}"
        )
        self.memory.add(summary, MemoryKind.PLANNER_FAILURE, self.name, query_tags)
        logger.warning(summary)
        return summary

    async def _dispatch(
        self,
        step: PlanStep,
        history: ExecutionHistory,
        cancel: asyncio.Event | None,
    ) -> None:
        """Run one step on its sub-agent and record the result."""
        agent = self.agents.get(step.agent_to_call)
        if agent is None:
            error_msg = (
                f"Error: Planner LLM chose an unknown agent: '{step.agent_to_call}'. "
                f"Available agents are {', '.join(self.agents.names) or '(none)'}."
            )
            logger.warning(f"[{self.name}] {error_msg}")
            history.append(error_msg)
            self.memory.add(error_msg, MemoryKind.PLANNER_ERROR, self.name)
            return

        parameters = dict(step.parameters)
        logger.info(
            f"[{self.name}] Executing agent {agent.name} for task \"{step.task_for_agent}\" "
            f"with params: {json.dumps(parameters)}"
        )

        try:
            result = await agent.process(step.task_for_agent, parameters, cancel)
        except CompletionServiceError as e:
            error_msg = f"Error: Completion service failed in agent {agent.name}: {e}"
            logger.error(f"[{self.name}] {error_msg}")
            history.append(error_msg)
            self.memory.add(error_msg, MemoryKind.PLANNER_ERROR, self.name)
            raise
        except Exception as e:
            result = f"Error executing agent {agent.name} for task '{step.task_for_agent}': {e}"
            logger.error(f"[{self.name}] Error during agent execution: {result}")

        history.append(f"Result from {agent.name} (Task: \"{step.task_for_agent}\"): {result}")
        tags = dict(parameters)
        tags["agent"] = agent.name
        self.memory.add(result, MemoryKind.AGENT_RESULT, agent.name, tags)
        logger.info(f"[{self.name}] Result from {agent.name}: {result}")
