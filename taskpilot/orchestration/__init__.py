"""Orchestration module for the multi-agent task orchestrator.

- Planner: top-level loop choosing which sub-agent runs next
- ReasoningAgent: bounded think/act/observe loop over a tool router
- Orchestrator: wiring and the run(query) entry point
"""

from .cancellation import raise_if_cancelled, run_cancellable
from .models import DEFAULT_FINAL_ANSWER, AgentAction, ExecutionHistory, PlanStep
from .orchestrator import AgentSpec, Orchestrator
from .parsing import StepParseError, parse_agent_action, parse_plan_step, strip_code_fence
from .planner import Planner
from .protocols import SubAgent
from .reasoning_loop import ReasoningAgent
from .registry import AgentRegistry

__all__ = [
    # Models
    "AgentAction",
    "PlanStep",
    "ExecutionHistory",
    "DEFAULT_FINAL_ANSWER",
    # Parsing
    "StepParseError",
    "parse_plan_step",
    "parse_agent_action",
    "strip_code_fence",
    # Cancellation
    "raise_if_cancelled",
    "run_cancellable",
    # Agents
    "SubAgent",
    "ReasoningAgent",
    "AgentRegistry",
    "Planner",
    # Wiring
    "AgentSpec",
    "Orchestrator",
]
