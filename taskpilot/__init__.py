"""Taskpilot multi-agent task orchestrator package."""

from .orchestration import AgentSpec, Orchestrator, Planner, ReasoningAgent

__all__ = [
    "Orchestrator",
    "AgentSpec",
    "Planner",
    "ReasoningAgent",
]
