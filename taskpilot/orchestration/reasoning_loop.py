"""
Reasoning Loop: the bounded think/act/observe sub-agent.

Each sub-agent owns its tool router and completion service configuration
and answers one task at a time with text.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Iterable

from ..tools.router import ToolRouter
from .cancellation import raise_if_cancelled, run_cancellable
from .parsing import StepParseError, parse_agent_action
from .prompts import REASONING_SYSTEM_PROMPT, render_reasoning_prompt

if TYPE_CHECKING:
    from ..config.loader import ReasoningConfig
    from ..llm.protocols import CompletionService
    from ..tools.protocols import ToolProvider

logger = logging.getLogger(__name__)


class ReasoningAgent:
    """
    A sub-agent running a ReAct-style loop over its own tools.

    States: Thinking -> (ToolCall | FinalAnswer | NoOp) -> Thinking ... ending
    in Resolved (final answer returned) or Exhausted (descriptive text).
    Tool selection is parsed from the model's JSON output, never delegated
    to native function calling.
    """

    def __init__(
        self,
        name: str,
        description: str,
        completion: CompletionService,
        router: ToolRouter,
        config: ReasoningConfig | None = None,
    ):
        """
        Initialize the sub-agent.

        Args:
            name: Agent name the planner uses to address it
            description: What the agent is good at (shown to the planner)
            completion: Completion service for this agent
            router: Tool router built from this agent's backends
            config: Reasoning loop configuration
        """
        self.name = name
        self.description = description
        self.completion = completion
        self.router = router

        if config is None:
            from ..config.loader import ReasoningConfig
            config = ReasoningConfig()

        self.max_iterations = config.max_iterations
        self.iteration_delay = config.iteration_delay
        self.temperature = config.temperature
        self.max_tokens = config.max_tokens

    @classmethod
    async def create(
        cls,
        name: str,
        description: str,
        completion: CompletionService,
        backends: Iterable[ToolProvider],
        config: ReasoningConfig | None = None,
    ) -> ReasoningAgent:
        """Build the agent's tool router from its backends and construct it."""
        router = await ToolRouter.build(backends)
        logger.info(f"[{name}] Initialized with {len(router)} tools")
        return cls(name, description, completion, router, config)

    def _label(self) -> str:
        return f"[{self.name} - ReAct]"

    async def process(
        self,
        task: str,
        parameters: dict[str, str],
        cancel: asyncio.Event | None = None,
    ) -> str:
        """
        Run the reasoning loop for one task.

        Args:
            task: Task description from the planner
            parameters: Parameters extracted by the planner
            cancel: Optional cancellation signal

        Returns:
            The agent's final answer, or a descriptive text when the loop ends
            on a parse failure, a tool error or the iteration budget

        Raises:
            CompletionServiceError: If the completion service is unreachable
            asyncio.CancelledError: If cancelled while running
        """
        parameters = dict(parameters or {})
        scratchpad: list[str] = []
        system_prompt = REASONING_SYSTEM_PROMPT.format(agent_name=self.name)

        logger.info(f"{self._label()} Starting task: {task}")

        for i in range(self.max_iterations):
            attempt = i + 1
            raise_if_cancelled(cancel)

            if self.iteration_delay > 0 and i > 0:
                await run_cancellable(asyncio.sleep(self.iteration_delay), cancel)

            prompt = render_reasoning_prompt(
                task=task,
                parameters=parameters,
                tools=self.router.describe(),
                scratchpad=scratchpad,
            )

            response = await run_cancellable(
                self.completion.complete(
                    prompt,
                    system_prompt=system_prompt,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    response_format="json_object",
                ),
                cancel,
            )
            logger.debug(f"{self._label()} Raw response: {response}")

            try:
                action = parse_agent_action(response)
            except StepParseError as e:
                logger.warning(f"{self._label()} Failed to parse action on attempt {attempt}: {e}")
                scratchpad.append(f"Attempt {attempt} Error. Observation: Could not parse action: {e}")
                return (
                    f"{self._label()} No final answer received: could not parse "
                    f"the action on attempt {attempt} ({e}). Ending ReAct loop."
                )

            logger.info(f"{self._label()} Attempt {attempt} Thought: {action.thought}")
            scratchpad.append(f"Attempt {attempt} Thought: {action.thought}")

            if action.is_final_answer:
                logger.info(f"{self._label()} Final answer reached on attempt {attempt}")
                return action.agent_output or ""

            if action.tool_to_use:
                scratchpad.append(
                    f"Attempt {attempt} Action: Use tool '{action.tool_to_use}' "
                    f"with input: {json.dumps(action.tool_input)}"
                )

                route = self.router.resolve(action.tool_to_use)
                if route is None:
                    logger.warning(f"{self._label()} Unknown tool '{action.tool_to_use}'")
                    scratchpad.append(
                        f"Attempt {attempt} Observation: Tool '{action.tool_to_use}' "
                        f"is not available, no tool was invoked. Available tools:\n"
                        f"{self.router.describe()}"
                    )
                    continue

                result = await run_cancellable(
                    self.router.invoke(route, action.tool_input), cancel
                )

                if not result.success:
                    logger.warning(
                        f"{self._label()} Tool {action.tool_to_use}({route.key}) "
                        f"returned an error: {result.error}"
                    )
                    scratchpad.append(f"Attempt {attempt} Error. Observation: {result.error}")
                    return (
                        f"{self._label()} Tool '{action.tool_to_use}' failed: "
                        f"{result.error}. Ending ReAct loop."
                    )

                scratchpad.append(f"Attempt {attempt} Observation: {result.result}")
            else:
                scratchpad.append(f"Attempt {attempt} Observation: No action taken.")

        logger.warning(f"{self._label()} Iteration budget of {self.max_iterations} exhausted")
        return (
            f"{self._label()} No final answer received after "
            f"{self.max_iterations} iterations. Ending ReAct loop."
        )
