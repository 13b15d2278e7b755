"""Factory functions to create backends from configuration."""

from __future__ import annotations

import importlib
import inspect
import logging
from typing import TYPE_CHECKING, Callable, Iterable

from ..memory.store import MemoryStore

if TYPE_CHECKING:
    from ..llm.protocols import CompletionService
    from ..orchestration.orchestrator import Orchestrator
    from ..tools.protocols import ToolProvider
    from .loader import CompletionConfig, MemoryConfig, ProfileConfig

logger = logging.getLogger(__name__)

MOCK_FINAL_ANSWER = (
    '{"reasoning": "Mock completion service", "isFinalStep": true, '
    '"finalAnswer": "[Mock answer]", "thought": "Mock completion service", '
    '"isFinalAnswer": true, "agentOutput": "[Mock answer]"}'
)


class MockCompletionService:
    """
    Mock completion service for testing.

    Replays scripted responses in order (the last one repeats once the script
    runs out), or delegates to a callable receiving the prompt. Every call is
    recorded in `calls`.
    """

    def __init__(
        self,
        responses: Iterable[str] | Callable[[str], str] | None = None,
    ):
        if responses is None:
            responses = [MOCK_FINAL_ANSWER]
        elif isinstance(responses, str):
            responses = [responses]
        if callable(responses):
            self._responder = responses
            self._script: list[str] = []
        else:
            self._responder = None
            self._script = list(responses)
            if not self._script:
                raise ValueError("MockCompletionService needs at least one response")
        self._position = 0
        self.calls: list[dict] = []

    @property
    def prompts(self) -> list[str]:
        """Prompts received so far, in order."""
        return [call["prompt"] for call in self.calls]

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        response_format: str | None = None,
    ) -> str:
        """Return the next scripted completion."""
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "response_format": response_format,
            }
        )
        if self._responder is not None:
            return self._responder(prompt)

        response = self._script[min(self._position, len(self._script) - 1)]
        self._position += 1
        return response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


def create_completion_service(config: CompletionConfig) -> CompletionService:
    """Create a completion service from configuration.

    Args:
        config: Completion configuration

    Returns:
        CompletionService instance (OpenRouter, OpenAI, Anthropic, or Mock)

    Raises:
        ValueError: If backend type is not supported or the API key is missing
    """
    if config.backend == "openrouter":
        from ..llm import OpenRouterAdapter

        return OpenRouterAdapter(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
        )

    elif config.backend == "openai":
        from ..llm import OpenAICompatibleAdapter

        return OpenAICompatibleAdapter(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
        )

    elif config.backend == "anthropic":
        from ..llm import AnthropicAdapter

        return AnthropicAdapter(
            api_key=config.api_key,
            model=config.model,
        )

    elif config.backend == "mock":
        return MockCompletionService()

    else:
        raise ValueError(f"Unsupported completion backend: {config.backend}")


def create_memory_store(config: MemoryConfig) -> MemoryStore:
    """Create a memory store with the configured capacities."""
    return MemoryStore(
        recent_capacity=config.recent_capacity,
        durable_capacity=config.durable_capacity,
    )


def load_tool_backend(import_path: str) -> ToolProvider:
    """Import a tool backend from a "package.module:attribute" path.

    If the attribute is a class or factory function it is called with no
    arguments; otherwise it is used as-is.

    Args:
        import_path: Dotted module path and attribute, separated by ":"

    Returns:
        Tool backend instance

    Raises:
        ValueError: If the path is malformed or the object is not a tool backend
        ImportError: If the module cannot be imported
    """
    module_name, sep, attribute = import_path.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(
            f"Invalid tool backend path '{import_path}', expected 'package.module:attribute'"
        )

    module = importlib.import_module(module_name)
    try:
        target = getattr(module, attribute)
    except AttributeError as e:
        raise ValueError(f"Module '{module_name}' has no attribute '{attribute}'") from e

    if inspect.isclass(target) or inspect.isfunction(target):
        target = target()

    if not (hasattr(target, "list_tools") and hasattr(target, "invoke")):
        raise ValueError(f"'{import_path}' is not a tool backend")

    logger.debug(f"Loaded tool backend {getattr(target, 'name', import_path)}")
    return target


async def create_orchestrator(
    profile: ProfileConfig,
    completion: CompletionService | None = None,
    memory: MemoryStore | None = None,
) -> Orchestrator:
    """Create a ready orchestrator from a profile configuration.

    This is the main factory function. The caller owns the completion
    service's lifecycle; pass one in to manage it with `async with`.

    Args:
        profile: Profile configuration
        completion: Completion service (created from the profile if None)
        memory: Memory store to share (created from the profile if None)

    Returns:
        Orchestrator with one reasoning sub-agent per configured agent

    Raises:
        ValueError: If any backend configuration is invalid
    """
    from ..orchestration.orchestrator import AgentSpec, Orchestrator

    if completion is None:
        completion = create_completion_service(profile.completion)
    if memory is None:
        memory = create_memory_store(profile.memory)

    specs = [
        AgentSpec(
            name=agent.name,
            description=agent.description,
            backends=[load_tool_backend(path) for path in agent.tool_backends],
            reasoning=agent.reasoning,
        )
        for agent in profile.agents
    ]

    return await Orchestrator.create(
        completion=completion,
        agent_specs=specs,
        memory=memory,
        planner_config=profile.planner,
        memory_config=profile.memory,
        completion_config=profile.completion,
        reasoning_config=profile.reasoning,
    )
