"""Protocol definitions for tool backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ToolDescriptor, ToolResult


@runtime_checkable
class ToolCatalog(Protocol):
    """Protocol for enumerating the tools a backend exposes."""

    async def list_tools(self) -> list[ToolDescriptor]:
        """
        List available tools.

        Returns:
            Tool descriptors (may raise; callers treat failure as zero tools)
        """
        ...


@runtime_checkable
class ToolBackend(Protocol):
    """Protocol for executing named tools."""

    name: str

    async def invoke(self, tool_name: str, arguments: dict[str, str]) -> ToolResult:
        """
        Execute a tool.

        Args:
            tool_name: Tool name as the backend knows it
            arguments: String arguments for the tool

        Returns:
            ToolResult carrying either the output text or an error message
        """
        ...


@runtime_checkable
class ToolProvider(ToolCatalog, ToolBackend, Protocol):
    """A backend that can both list and execute its tools."""
