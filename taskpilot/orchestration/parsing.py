"""Strict parsing of structured completion output."""

from __future__ import annotations

import logging
import re
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from .models import AgentAction, PlanStep

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

ModelT = TypeVar("ModelT", bound=BaseModel)


class StepParseError(ValueError):
    """Raised when a completion does not match the expected JSON shape."""


def strip_code_fence(text: str) -> str:
    """Remove one surrounding Markdown code fence, if present."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    return match.group(1) if match else stripped


def _parse(model: type[ModelT], response: str) -> ModelT:
    payload = strip_code_fence(response or "")
    if not payload:
        raise StepParseError(f"Empty response, expected a {model.__name__} JSON object")

    try:
        return model.model_validate_json(payload)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise StepParseError(f"Invalid {model.__name__}: {errors}") from e


def parse_plan_step(response: str) -> PlanStep:
    """
    Parse a planner completion into a PlanStep.

    Args:
        response: Raw completion text

    Returns:
        Validated PlanStep

    Raises:
        StepParseError: If the text is not valid PlanStep JSON
    """
    return _parse(PlanStep, response)


def parse_agent_action(response: str) -> AgentAction:
    """
    Parse a reasoning-loop completion into an AgentAction.

    Args:
        response: Raw completion text

    Returns:
        Validated AgentAction

    Raises:
        StepParseError: If the text is not valid AgentAction JSON
    """
    return _parse(AgentAction, response)
