"""Adapter implementations for completion services."""

import logging

import anthropic
import openai
from openai import AsyncOpenAI

from ..settings import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_DEFAULT_MODEL,
    COMPLETION_MAX_RETRIES,
    COMPLETION_TIMEOUT_SECONDS,
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    OPENAI_DEFAULT_MODEL,
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
    OPENROUTER_DEFAULT_MODEL,
)
from .protocols import CompletionService, CompletionServiceError

logger = logging.getLogger(__name__)

JSON_ONLY_INSTRUCTION = "Respond with a single valid JSON object and nothing else."


class OpenAICompatibleAdapter(CompletionService):
    """
    Adapter for any OpenAI-compatible chat completions API.

    Usage:
        async with OpenAICompatibleAdapter(api_key="...") as llm:
            response = await llm.complete("What is 2 + 2?")
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ):
        """
        Initialize the adapter.

        Args:
            api_key: API key. If not provided, uses OPENAI_API_KEY env var.
            model: Model to use. Defaults to OPENAI_DEFAULT_MODEL.
            base_url: Optional endpoint override (Azure, local gateways, ...).
        """
        self.api_key = api_key or OPENAI_API_KEY
        self.model = model or OPENAI_DEFAULT_MODEL
        self.base_url = base_url or OPENAI_BASE_URL
        self._client: AsyncOpenAI | None = None

        if not self.api_key:
            raise ValueError(
                f"{self.provider_name} API key required. Set it in .env or the profile"
            )

        logger.info(f"{type(self).__name__} initialized with model: {self.model}")

    async def __aenter__(self) -> "OpenAICompatibleAdapter":
        self._client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            max_retries=COMPLETION_MAX_RETRIES,
            timeout=COMPLETION_TIMEOUT_SECONDS,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        response_format: str | None = None,
    ) -> str:
        """Generate a completion for a rendered prompt."""
        messages: list[dict] = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        messages.append({"role": "user", "content": prompt})

        extra: dict = {}
        if response_format:
            extra["response_format"] = {"type": response_format}

        logger.info(f"Completing prompt ({len(prompt)} chars) with {self.model}")
        logger.debug(f"Temperature: {temperature}, max_tokens: {max_tokens}")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **extra,
            )
        except openai.APIError as e:
            logger.error(f"{self.provider_name} request failed: {e}")
            raise CompletionServiceError(f"{self.provider_name} request failed: {e}") from e

        result = response.choices[0].message.content if response.choices else None
        if not result:
            raise CompletionServiceError(f"{self.provider_name} returned an empty completion")

        logger.info(f"Completion received ({len(result)} chars)")
        logger.debug(f"Usage: {response.usage}")

        return result


class OpenRouterAdapter(OpenAICompatibleAdapter):
    """
    Adapter for OpenRouter API.

    OpenRouter provides access to many LLMs through an OpenAI-compatible API.
    """

    provider_name = "openrouter"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ):
        super().__init__(
            api_key=api_key or OPENROUTER_API_KEY,
            model=model or OPENROUTER_DEFAULT_MODEL,
            base_url=base_url or OPENROUTER_BASE_URL,
        )


class AnthropicAdapter(CompletionService):
    """
    Adapter for Anthropic API (direct).

    Anthropic has no JSON response mode, so a JSON-only instruction is added
    to the system prompt when one is requested.

    Usage:
        async with AnthropicAdapter() as llm:
            response = await llm.complete("What is 2 + 2?")
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
    ):
        """
        Initialize the Anthropic adapter.

        Args:
            api_key: Optional API key. If not provided, uses ANTHROPIC_API_KEY env var.
            model: Model to use. Defaults to ANTHROPIC_DEFAULT_MODEL.
        """
        self.api_key = api_key or ANTHROPIC_API_KEY
        self.model = model or ANTHROPIC_DEFAULT_MODEL
        self._client: anthropic.AsyncAnthropic | None = None

        if not self.api_key:
            raise ValueError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY in .env"
            )

        logger.info(f"Anthropic adapter initialized with model: {self.model}")

    async def __aenter__(self) -> "AnthropicAdapter":
        self._client = anthropic.AsyncAnthropic(
            api_key=self.api_key,
            max_retries=COMPLETION_MAX_RETRIES,
            timeout=COMPLETION_TIMEOUT_SECONDS,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        response_format: str | None = None,
    ) -> str:
        """Generate a completion for a rendered prompt."""
        system = system_prompt or ""
        if response_format == "json_object":
            system = f"{system}\n{JSON_ONLY_INSTRUCTION}".strip()

        logger.info(f"Completing prompt ({len(prompt)} chars) with {self.model}")
        logger.debug(f"Temperature: {temperature}, max_tokens: {max_tokens}")

        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or 4096,
                system=system,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
            )
        except anthropic.APIError as e:
            logger.error(f"Anthropic request failed: {e}")
            raise CompletionServiceError(f"Anthropic request failed: {e}") from e

        result = "".join(
            block.text for block in message.content if block.type == "text"
        )
        if not result:
            raise CompletionServiceError("Anthropic returned an empty completion")

        logger.info(f"Completion received ({len(result)} chars)")
        logger.debug(f"Usage: input={message.usage.input_tokens}, output={message.usage.output_tokens}")

        return result
