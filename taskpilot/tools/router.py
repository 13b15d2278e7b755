"""Routing of tool names to the backend that serves them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from .models import ToolDescriptor, ToolResult

if TYPE_CHECKING:
    from .protocols import ToolProvider

logger = logging.getLogger(__name__)

_STRIP_CHARS = re.compile(r"[\s\-._,;:?!'\"\\/]")
_QUALIFIER_SEPARATORS = re.compile(r"[.-]")


def sanitize_tool_name(name: str) -> str:
    """Lower-case a tool name and strip whitespace and punctuation."""
    return _STRIP_CHARS.sub("", name.lower()).strip()


def unqualified_tool_name(reference: str) -> str:
    """Last segment of a `plugin.tool` or `plugin-tool` reference."""
    return _QUALIFIER_SEPARATORS.split(reference)[-1]


@dataclass
class ToolRoute:
    """A resolved tool reference."""

    backend: ToolProvider
    tool_name: str  # unqualified name passed to the backend
    key: str  # sanitized router key


class ToolRouter:
    """
    Maps sanitized tool names to the backend that registered them.

    Built once per sub-agent. On a name collision the backend registered
    last wins.
    """

    def __init__(self) -> None:
        self._routes: dict[str, ToolProvider] = {}
        self._tools: dict[str, ToolDescriptor] = {}

    @classmethod
    async def build(cls, backends: Iterable[ToolProvider]) -> ToolRouter:
        """
        Build a router from the catalogs of one or more backends.

        A backend whose catalog fails, or returns something that is not a
        list of descriptors, contributes no tools; the others are still
        registered.

        Args:
            backends: Tool providers, in registration order

        Returns:
            Populated ToolRouter
        """
        router = cls()
        for backend in backends:
            backend_name = getattr(backend, "name", type(backend).__name__)
            try:
                descriptors = list(await backend.list_tools())
                for descriptor in descriptors:
                    if not isinstance(descriptor.name, str) or not descriptor.name.strip():
                        raise TypeError(f"invalid tool name {descriptor.name!r}")
            except Exception as e:
                logger.warning(f"Error discovering tools from backend {backend_name}: {e}")
                continue

            for descriptor in descriptors:
                router.register(descriptor, backend)

            logger.info(f"Registered {len(descriptors)} tools from backend {backend_name}")
        return router

    def register(self, descriptor: ToolDescriptor, backend: ToolProvider) -> str:
        """Register one tool, overwriting any previous owner of its key."""
        key = sanitize_tool_name(descriptor.name)
        previous = self._routes.get(key)
        if previous is not None and previous is not backend:
            logger.debug(
                f"Tool key '{key}' re-registered by "
                f"{getattr(backend, 'name', type(backend).__name__)}"
            )
        self._routes[key] = backend
        self._tools[key] = descriptor
        return key

    @property
    def tools(self) -> list[ToolDescriptor]:
        """Descriptors of all routable tools, one per key."""
        return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, reference: str) -> bool:
        return self.resolve(reference) is not None

    def resolve(self, reference: str) -> ToolRoute | None:
        """
        Resolve a possibly qualified tool reference.

        Args:
            reference: e.g. "get_value", "metadata.get_value", "Meta-GetValue"

        Returns:
            ToolRoute, or None if no backend serves the tool
        """
        tool_name = unqualified_tool_name(reference)
        key = sanitize_tool_name(tool_name)
        backend = self._routes.get(key)
        if backend is None:
            return None
        return ToolRoute(backend=backend, tool_name=tool_name, key=key)

    async def invoke(self, route: ToolRoute, arguments: dict[str, str]) -> ToolResult:
        """
        Invoke a resolved tool.

        Exceptions raised by the backend are converted into error results.

        Args:
            route: Route returned by resolve()
            arguments: Tool arguments

        Returns:
            ToolResult from the backend
        """
        rendered_args = ", ".join(f"{k} => {v}" for k, v in arguments.items())
        logger.info(f"Tool {route.tool_name} is about to be invoked with arguments {rendered_args}")

        try:
            result = await route.backend.invoke(route.tool_name, dict(arguments))
        except Exception as e:
            logger.warning(f"Tool {route.tool_name} raised: {e}")
            return ToolResult.failed(str(e))

        logger.info(
            f"Tool {route.tool_name} was invoked with result "
            f"{result.result if result.success else result.error}"
        )
        return result

    def describe(self) -> str:
        """
        Get human-readable tool descriptions.

        Returns:
            Formatted string describing all routable tools
        """
        if not self._tools:
            return "No tools available."

        lines = []
        for descriptor in self._tools.values():
            lines.append(f"- {descriptor.name}: {descriptor.description}")
        return "\n".join(lines)
