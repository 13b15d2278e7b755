"""Configuration system for completion backends and orchestration loops."""

from .loader import (
    load_config,
    load_config_from_env,
    load_config_from_yaml,
    ProfileConfig,
    CompletionConfig,
    MemoryConfig,
    PlannerConfig,
    ReasoningConfig,
    AgentConfig,
)
from .factory import (
    MockCompletionService,
    create_completion_service,
    create_memory_store,
    create_orchestrator,
    load_tool_backend,
)

__all__ = [
    # Loader
    "load_config",
    "load_config_from_env",
    "load_config_from_yaml",
    "ProfileConfig",
    "CompletionConfig",
    "MemoryConfig",
    "PlannerConfig",
    "ReasoningConfig",
    "AgentConfig",
    # Factory
    "MockCompletionService",
    "create_completion_service",
    "create_memory_store",
    "create_orchestrator",
    "load_tool_backend",
]
