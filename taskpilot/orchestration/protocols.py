"""Protocol definitions for the orchestration layer."""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable


@runtime_checkable
class SubAgent(Protocol):
    """
    Protocol for agents the planner can delegate to.

    A sub-agent runs its own bounded loop for one task and always answers
    with text; failures are reported as text, not raised.
    """

    name: str
    description: str

    async def process(
        self,
        task: str,
        parameters: dict[str, str],
        cancel: asyncio.Event | None = None,
    ) -> str:
        """
        Run a task to completion or exhaustion.

        Args:
            task: Task description chosen by the planner
            parameters: String parameters extracted by the planner
            cancel: Optional cancellation signal

        Returns:
            Final answer or a descriptive incomplete/error text
        """
        ...
