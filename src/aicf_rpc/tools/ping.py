from __future__ import annotations

from typing import Any

from .base import ToolDescriptor


def _handler(args: dict[str, Any]) -> str:
    _ = args
    return "pong"


descriptor = ToolDescriptor(
    name="rpc.ping",
    description="Health check / smoke tool for the dispatch path.",
    category="diagnostics",
)
handler = _handler
