from __future__ import annotations

from typing import Any, Callable

from .base import ContextDescriptor


descriptor = ContextDescriptor(
    name="server.info",
    description="Name, version and capability tags of this server.",
    format="json",
)


def make_supplier(describe: Callable[[], dict[str, Any]]) -> Callable[[], dict[str, Any]]:
    def _supplier() -> dict[str, Any]:
        return describe()

    return _supplier
