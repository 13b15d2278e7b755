"""Completion service integrations with protocol-based adapter pattern."""

from .protocols import CompletionService, CompletionServiceError
from .adapters import AnthropicAdapter, OpenAICompatibleAdapter, OpenRouterAdapter

__all__ = [
    # Protocols
    "CompletionService",
    "CompletionServiceError",
    # Adapters
    "OpenAICompatibleAdapter",
    "OpenRouterAdapter",
    "AnthropicAdapter",
]
