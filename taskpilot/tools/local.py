"""In-process tool backend hosting plain Python callables."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

from .models import ToolDescriptor, ToolResult
from .router import sanitize_tool_name

logger = logging.getLogger(__name__)

ToolFunction = Callable[..., Any]


@dataclass
class _LocalTool:
    descriptor: ToolDescriptor
    function: ToolFunction


class LocalToolBackend:
    """
    Tool backend and catalog for callables living in this process.

    Functions receive the tool arguments as keyword arguments and may be
    sync or async. Return values are converted with str().

    Usage:
        backend = LocalToolBackend("metadata")
        backend.register("entities_by_name", lookup, "Find entities by name")
        router = await ToolRouter.build([backend])
    """

    def __init__(self, name: str):
        self.name = name
        self._tools: dict[str, _LocalTool] = {}

    def register(
        self,
        tool_name: str,
        function: ToolFunction,
        description: str = "",
    ) -> ToolDescriptor:
        """
        Register a callable as a tool.

        Args:
            tool_name: Name advertised in the catalog
            function: Sync or async callable
            description: Text shown to the model

        Returns:
            The registered descriptor
        """
        descriptor = ToolDescriptor(
            name=tool_name,
            description=description or (inspect.getdoc(function) or "").split("\n")[0],
            handle=function,
        )
        self._tools[sanitize_tool_name(tool_name)] = _LocalTool(descriptor, function)
        return descriptor

    def tool(self, description: str = "", name: str | None = None):
        """Decorator form of register()."""

        def decorator(function: ToolFunction) -> ToolFunction:
            self.register(name or function.__name__, function, description)
            return function

        return decorator

    async def list_tools(self) -> list[ToolDescriptor]:
        return [tool.descriptor for tool in self._tools.values()]

    async def invoke(self, tool_name: str, arguments: dict[str, str]) -> ToolResult:
        tool = self._tools.get(sanitize_tool_name(tool_name))
        if tool is None:
            return ToolResult.failed(f"Unknown tool: {tool_name}")

        try:
            output = tool.function(**arguments)
            if inspect.isawaitable(output):
                output = await output
        except Exception as e:
            logger.warning(f"[{self.name}] Tool {tool_name} failed: {e}")
            return ToolResult.failed(str(e))

        return ToolResult.ok("" if output is None else str(output))
