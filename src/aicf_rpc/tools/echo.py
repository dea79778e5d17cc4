from __future__ import annotations

from typing import Any

from .base import ArgSpec, ToolDescriptor


async def _handler(args: dict[str, Any]) -> dict[str, Any]:
    # Returned unchanged so callers can see how their arguments were mapped.
    return dict(args)


descriptor = ToolDescriptor(
    name="rpc.echo",
    description="Return the named arguments the call resolved to.",
    args=(ArgSpec(name="message", type="string", required=True, description="Text to echo back."),),
    category="diagnostics",
)
handler = _handler
