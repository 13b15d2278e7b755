"""Tool descriptors, backend protocols and per-agent routing."""

from .models import ToolDescriptor, ToolResult
from .protocols import ToolBackend, ToolCatalog, ToolProvider
from .router import ToolRoute, ToolRouter, sanitize_tool_name, unqualified_tool_name
from .local import LocalToolBackend

__all__ = [
    # Models
    "ToolDescriptor",
    "ToolResult",
    # Protocols
    "ToolCatalog",
    "ToolBackend",
    "ToolProvider",
    # Routing
    "ToolRoute",
    "ToolRouter",
    "sanitize_tool_name",
    "unqualified_tool_name",
    # Backends
    "LocalToolBackend",
]
