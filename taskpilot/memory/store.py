"""Bounded two-tier memory store with keyword relevance retrieval."""

from __future__ import annotations

import itertools
import logging
import re
from threading import RLock
from typing import Iterable

from .models import MemoryItem, MemoryKind

logger = logging.getLogger(__name__)

NO_MEMORIES_SENTINEL = "No relevant memories found."

# Query context is split on exactly these characters, nothing else.
KEYWORD_SEPARATORS = re.compile(r"[ ,.?!]+")


def _take_last(items: list[MemoryItem], count: int) -> list[MemoryItem]:
    """Last `count` items, preserving order (empty for count <= 0)."""
    if count <= 0:
        return []
    return items[-count:]


def extract_keywords(context: str) -> list[str]:
    """Lower-case keywords of a query context."""
    return [k for k in KEYWORD_SEPARATORS.split(context.lower()) if k]


class MemoryStore:
    """
    Two-tier memory for the planner.

    - `recent`: every added item, capped at `recent_capacity`
    - `durable`: explicitly promoted items, capped at `durable_capacity`

    Both tiers evict strictly oldest-first by insertion order. Access is
    serialized with a lock so one store can back concurrent runs.
    """

    def __init__(self, recent_capacity: int = 20, durable_capacity: int = 5):
        """
        Initialize the memory store.

        Args:
            recent_capacity: Maximum items kept in the recent tier
            durable_capacity: Maximum items kept in the durable tier
        """
        if recent_capacity < 1 or durable_capacity < 1:
            raise ValueError("Memory capacities must be at least 1")

        self.recent_capacity = recent_capacity
        self.durable_capacity = durable_capacity
        self._recent: list[MemoryItem] = []
        self._durable: list[MemoryItem] = []
        self._sequence = itertools.count(1)
        self._lock = RLock()

    @property
    def recent_items(self) -> list[MemoryItem]:
        """Snapshot of the recent tier, oldest first."""
        with self._lock:
            return list(self._recent)

    @property
    def durable_items(self) -> list[MemoryItem]:
        """Snapshot of the durable tier, oldest first."""
        with self._lock:
            return list(self._durable)

    def add(
        self,
        content: str,
        kind: MemoryKind | str = MemoryKind.GENERIC,
        source: str = "Unknown",
        tags: dict[str, str] | None = None,
        promote: bool = False,
    ) -> MemoryItem:
        """
        Add a memory item, optionally promoting it to the durable tier.

        Args:
            content: Memory text
            kind: Kind tag (e.g. AgentResult, FinalAnswer)
            source: Name of the producing component
            tags: Key/value tags used for relevance matching
            promote: Also keep the item in the durable tier

        Returns:
            The created MemoryItem
        """
        with self._lock:
            item = MemoryItem(
                content=content,
                kind=kind,
                source=source,
                tags=dict(tags or {}),
                sequence=next(self._sequence),
            )

            self._recent.append(item)
            logger.debug(f"[MEMORY ADDED - RECENT] {item}")
            if len(self._recent) > self.recent_capacity:
                self._recent.pop(0)
                logger.debug("[MEMORY TRIMMED - RECENT] Oldest item removed")

            if promote:
                self._durable.append(item)
                logger.debug(f"[MEMORY ADDED - DURABLE] {item}")
                if len(self._durable) > self.durable_capacity:
                    self._durable.pop(0)
                    logger.debug("[MEMORY TRIMMED - DURABLE] Oldest item removed")

            return item

    def retrieve(
        self,
        query_context: str,
        max_recent: int = 5,
        max_durable: int = 3,
    ) -> list[MemoryItem]:
        """
        Retrieve memories relevant to a query context.

        The newest `max_recent` recent items are always included. Durable items
        are included when any tag key or value equals a context keyword, or
        when the content contains a keyword as a substring; the newest
        `max_durable` matches are kept. An empty context skips the filter.

        Args:
            query_context: Free text describing the current situation
            max_recent: Number of recent items to include
            max_durable: Number of durable items to include

        Returns:
            Distinct items, most recent first
        """
        with self._lock:
            relevant = list(_take_last(self._recent, max_recent))

            if query_context and query_context.strip():
                keywords = extract_keywords(query_context)
                keyword_set = set(keywords)
                matches = [
                    item for item in self._durable
                    if self._matches(item, keywords, keyword_set)
                ]
                relevant.extend(_take_last(matches, max_durable))
            else:
                relevant.extend(_take_last(self._durable, max_durable))

        distinct: dict[str, MemoryItem] = {}
        for item in relevant:
            distinct.setdefault(item.id, item)

        result = sorted(
            distinct.values(),
            key=lambda m: (m.timestamp, m.sequence),
            reverse=True,
        )
        logger.debug(
            f"[MEMORY RETRIEVED] Found {len(result)} relevant memories for context: "
            f"'{(query_context or '')[:30]}(...)'"
        )
        return result

    @staticmethod
    def _matches(item: MemoryItem, keywords: list[str], keyword_set: set[str]) -> bool:
        for key, value in item.tags.items():
            if value.lower() in keyword_set or key.lower() in keyword_set:
                return True
        content = item.content.lower()
        return any(keyword in content for keyword in keywords)

    @staticmethod
    def format(items: Iterable[MemoryItem]) -> str:
        """Render memories for a prompt, one line per item."""
        lines = [
            f"- ({item.kind_label} from {item.source} at "
            f"{item.timestamp:%Y-%m-%dT%H:%M:%S}): {item.content}"
            for item in items
        ]
        if not lines:
            return NO_MEMORIES_SENTINEL
        return "\n".join(lines)

    def clear(self) -> None:
        """Drop all memories from both tiers."""
        with self._lock:
            self._recent.clear()
            self._durable.clear()
        logger.info("Memory store cleared")

    def get_stats(self) -> dict:
        """Get tier sizes and capacities."""
        with self._lock:
            return {
                "recent": len(self._recent),
                "recent_capacity": self.recent_capacity,
                "durable": len(self._durable),
                "durable_capacity": self.durable_capacity,
            }
