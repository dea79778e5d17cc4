from __future__ import annotations

from typing import TYPE_CHECKING

from . import echo, ping, server_info
from .base import ArgSpec, ContextDescriptor, ToolDescriptor
from .registry import ContextRegistry, ToolRegistry

if TYPE_CHECKING:
    from ..server import RpcServer


def register_builtin_tools(server: "RpcServer") -> None:
    """Register the diagnostic tools and the `server.info` context."""
    server.tools.register(ping.descriptor, ping.handler)
    server.tools.register(echo.descriptor, echo.handler)
    server.contexts.register(
        server_info.descriptor,
        server_info.make_supplier(server.dispatcher.describe_server),
    )


__all__ = [
    "ArgSpec",
    "ToolDescriptor",
    "ContextDescriptor",
    "ToolRegistry",
    "ContextRegistry",
    "register_builtin_tools",
]
