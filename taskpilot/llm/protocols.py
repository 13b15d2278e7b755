"""Protocol definitions for completion services."""

from typing import Protocol, runtime_checkable


class CompletionServiceError(RuntimeError):
    """Raised when a completion backend cannot produce a response.

    Covers unreachable endpoints, timeouts and empty bodies. The orchestrator
    never converts this into text: it ends the current run.
    """


@runtime_checkable
class CompletionService(Protocol):
    """Protocol for completion services.

    Implement this protocol to add support for new LLM APIs. Tool calling is
    never delegated to the service: callers ask for structured JSON and decide
    on tool use themselves.
    """

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        response_format: str | None = None,
    ) -> str:
        """
        Generate a completion for a rendered prompt.

        Args:
            prompt: The fully rendered prompt
            system_prompt: Optional system prompt
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate
            response_format: Optional format hint, e.g. "json_object"

        Returns:
            The generated text

        Raises:
            CompletionServiceError: If the backend is unreachable or returns nothing
        """
        ...
