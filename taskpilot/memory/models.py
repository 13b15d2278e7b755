"""Data models for the planner memory store."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MemoryKind(str, Enum):
    """Kind of memory item."""

    GENERIC = "Generic"
    PLANNER_REASONING = "PlannerReasoning"
    AGENT_RESULT = "AgentResult"
    PLANNER_ERROR = "PlannerError"
    FINAL_ANSWER = "FinalAnswer"
    PLANNER_FAILURE = "PlannerFailure"


@dataclass(frozen=True, eq=False)
class MemoryItem:
    """A single immutable memory entry, identified by its `id`.

    `sequence` is assigned by the store and breaks timestamp ties so that
    "most recent first" stays well defined for items created in the same
    clock tick.
    """

    content: str
    kind: MemoryKind | str = MemoryKind.GENERIC
    source: str = "Unknown"
    tags: dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sequence: int = 0

    @property
    def kind_label(self) -> str:
        """Kind as plain text."""
        return self.kind.value if isinstance(self.kind, MemoryKind) else str(self.kind)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MemoryItem):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return (
            f"[MemoryItem ({self.kind_label} from {self.source} at "
            f"{self.timestamp:%Y-%m-%dT%H:%M:%S})]: {self.content} "
            f"(Tags: {json.dumps(self.tags)})"
        )
