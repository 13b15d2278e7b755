"""Planner memory: bounded recent/durable tiers with keyword retrieval."""

from .models import MemoryItem, MemoryKind
from .store import MemoryStore, NO_MEMORIES_SENTINEL, extract_keywords

__all__ = [
    "MemoryItem",
    "MemoryKind",
    "MemoryStore",
    "NO_MEMORIES_SENTINEL",
    "extract_keywords",
]
