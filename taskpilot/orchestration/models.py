"""Data models for planning and reasoning steps."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_FINAL_ANSWER = "Plan complete by LLM, but no final answer string provided."


def _coerce_string_mapping(value: Any) -> Any:
    """Turn mapping values into strings; null becomes empty, other non-strings JSON."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return {
            str(k): "" if v is None else (v if isinstance(v, str) else json.dumps(v))
            for k, v in value.items()
        }
    return value


class PlanStep(BaseModel):
    """One planner decision, parsed from the completion service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    agent_to_call: str = Field(default="", alias="agentToCall")
    task_for_agent: str = Field(default="", alias="taskForAgent")
    parameters: dict[str, str] = Field(default_factory=dict)
    reasoning: str
    is_final_step: bool = Field(alias="isFinalStep")
    final_answer: str | None = Field(default=None, alias="finalAnswer")

    @field_validator("parameters", mode="before")
    @classmethod
    def coerce_parameters(cls, v: Any) -> Any:
        return _coerce_string_mapping(v)

    @field_validator("agent_to_call", "task_for_agent", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @model_validator(mode="after")
    def require_agent_for_non_final(self) -> PlanStep:
        if not self.is_final_step:
            if not self.agent_to_call.strip():
                raise ValueError("agentToCall is required when isFinalStep is false")
            if not self.task_for_agent.strip():
                raise ValueError("taskForAgent is required when isFinalStep is false")
        return self

    @property
    def resolved_final_answer(self) -> str:
        """Final answer, or the default text when the model left it empty."""
        return self.final_answer or DEFAULT_FINAL_ANSWER


class AgentAction(BaseModel):
    """One reasoning-loop decision, parsed from the completion service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tool_to_use: str | None = Field(default=None, alias="toolToUse")
    tool_input: dict[str, str] = Field(default_factory=dict, alias="toolInput")
    thought: str
    is_final_answer: bool = Field(alias="isFinalAnswer")
    agent_output: str | None = Field(default=None, alias="agentOutput")

    @field_validator("tool_input", mode="before")
    @classmethod
    def coerce_tool_input(cls, v: Any) -> Any:
        return _coerce_string_mapping(v)

    @field_validator("tool_to_use", mode="before")
    @classmethod
    def empty_tool_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


@dataclass
class ExecutionHistory:
    """Append-only log of one run's planning and reasoning steps."""

    entries: list[str] = field(default_factory=list)

    def append(self, entry: str) -> None:
        self.entries.append(entry)

    def joined(self, separator: str = "\n") -> str:
        return separator.join(self.entries)

    @property
    def last(self) -> str | None:
        return self.entries[-1] if self.entries else None

    def __len__(self) -> int:
        return len(self.entries)
