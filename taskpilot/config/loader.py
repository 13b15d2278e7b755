"""Configuration loader with Pydantic validation and env var expansion."""

import logging
import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "profiles.yaml"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class CompletionConfig(BaseModel):
    """Configuration for the completion service backend."""

    backend: Literal["openrouter", "openai", "anthropic", "mock"] = "openrouter"
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.1
    max_tokens: int | None = 500

    @field_validator("model", "api_key", "base_url", mode="before")
    @classmethod
    def unset_to_none(cls, v):
        """Empty values and unexpanded ${VAR} references mean "not configured"."""
        if isinstance(v, str) and (not v.strip() or _ENV_VAR_PATTERN.search(v)):
            return None
        return v


class MemoryConfig(BaseModel):
    """Configuration for the planner memory store."""

    recent_capacity: int = Field(default=20, ge=1)
    durable_capacity: int = Field(default=5, ge=1)
    max_recent: int = Field(default=5, ge=0)  # recent items per retrieval
    max_durable: int = Field(default=3, ge=0)  # durable items per retrieval


class ReasoningConfig(BaseModel):
    """Configuration for a sub-agent's reasoning loop."""

    max_iterations: int = Field(default=5, ge=1)
    iteration_delay: float = Field(default=0.0, ge=0.0)  # seconds between iterations
    temperature: float = 0.0
    max_tokens: int | None = 500


class PlannerConfig(BaseModel):
    """Configuration for the top-level planner."""

    max_iterations: int = Field(default=5, ge=1)
    max_consecutive_parse_failures: int = Field(default=2, ge=1)


class AgentConfig(BaseModel):
    """Configuration for one sub-agent."""

    name: str
    description: str = ""
    # "package.module:attribute" paths to tool backends, or factories returning one
    tool_backends: list[str] = Field(default_factory=list)
    reasoning: ReasoningConfig | None = None  # overrides the profile default


class ProfileConfig(BaseModel):
    """Configuration profile containing all component configs."""

    completion: CompletionConfig
    memory: MemoryConfig = MemoryConfig()
    planner: PlannerConfig = PlannerConfig()
    reasoning: ReasoningConfig = ReasoningConfig()
    agents: list[AgentConfig] = Field(default_factory=list)


class ConfigFile(BaseModel):
    """Root configuration file structure."""

    profiles: dict[str, ProfileConfig]


def expand_env_vars(value: str) -> str:
    """Expand ${VAR} references in string with environment variables.

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars expanded (unknown variables are left as-is)
    """
    if not isinstance(value, str):
        return value

    def replacer(match):
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_PATTERN.sub(replacer, value)


def expand_env_vars_recursive(data):
    """Recursively expand env vars in nested dict/list structures.

    Args:
        data: Dict, list, or primitive value

    Returns:
        Data structure with all env vars expanded
    """
    if isinstance(data, dict):
        return {k: expand_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def load_config_from_yaml(config_path: Path, profile_name: str) -> ProfileConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config YAML file
        profile_name: Name of profile to load

    Returns:
        ProfileConfig for the requested profile

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid
        KeyError: If profile doesn't exist
    """
    with open(config_path) as f:
        raw_data = yaml.safe_load(f)

    expanded_data = expand_env_vars_recursive(raw_data)

    config_file = ConfigFile(**expanded_data)

    if profile_name not in config_file.profiles:
        available = ", ".join(config_file.profiles.keys())
        raise KeyError(
            f"Profile '{profile_name}' not found. " f"Available profiles: {available}"
        )

    return config_file.profiles[profile_name]


def load_config_from_env() -> ProfileConfig:
    """Load configuration from environment variables (fallback mode).

    Uses OpenRouter for completions and default loop settings. No agents are
    configured in this mode.

    Returns:
        ProfileConfig constructed from environment variables
    """
    completion = CompletionConfig(
        backend="openrouter",
        model=os.environ.get("OPENROUTER_DEFAULT_MODEL", "openai/gpt-4.1-mini"),
        api_key=os.environ.get("OPENROUTER_API_KEY"),
        base_url=os.environ.get(
            "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
        ),
    )

    return ProfileConfig(completion=completion)


def load_config(
    profile: str | None = None,
    config_path: Path | None = None,
) -> ProfileConfig:
    """Load configuration from YAML file or environment variables.

    This is the main entry point for loading configuration. It tries to load
    from a YAML config file first, and falls back to environment variables
    if the file doesn't exist or can't be read.

    Args:
        profile: Profile name to load. If None, uses TASKPILOT_PROFILE env var
                or "dev" as default.
        config_path: Path to config file. If None, uses the bundled
                    taskpilot/config/profiles.yaml.

    Returns:
        ProfileConfig with all component configurations

    Raises:
        KeyError: If requested profile doesn't exist in the config file
    """
    if profile is None:
        profile = os.environ.get("TASKPILOT_PROFILE", "dev")

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.warning(f"Config file {config_path} not found, using environment variables")
        return load_config_from_env()

    try:
        return load_config_from_yaml(config_path, profile)
    except KeyError:
        raise
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Falling back to environment variables...")
        return load_config_from_env()
