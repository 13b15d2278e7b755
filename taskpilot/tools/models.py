"""Tool descriptors and invocation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ToolDescriptor:
    """A tool exposed by a backend.

    `handle` is opaque to everything but the backend that produced it.
    """

    name: str
    description: str = ""
    handle: Any = field(default=None, repr=False, compare=False)


@dataclass
class ToolResult:
    """Result of a tool execution. Errors are data, not exceptions."""

    success: bool
    result: str = ""
    error: str | None = None

    @classmethod
    def ok(cls, result: str) -> ToolResult:
        return cls(success=True, result=result)

    @classmethod
    def failed(cls, error: str) -> ToolResult:
        return cls(success=False, error=error)
