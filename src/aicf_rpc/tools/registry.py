from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .base import (
    ArgSpec,
    ContextDescriptor,
    ContextFormat,
    ContextSupplier,
    RegisteredContext,
    RegisteredTool,
    ToolDescriptor,
    ToolHandler,
)
from .schema import coerce_args


@dataclass
class ToolRegistry:
    """Name -> (descriptor, handler). Re-registering a name replaces the entry."""

    _tools: dict[str, RegisteredTool] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(self, descriptor: ToolDescriptor, handler: ToolHandler) -> None:
        if not callable(handler):
            raise TypeError("handler must be callable")
        with self._lock:
            # Keep the original slot when overwriting so listing order stays stable.
            self._tools[descriptor.name] = RegisteredTool(descriptor=descriptor, handler=handler)

    def register_tool(
        self,
        name: str,
        description: str,
        args: Iterable[ArgSpec | tuple[str, str] | str] | Mapping[str, Any] | None,
        handler: ToolHandler,
        *,
        category: str | None = None,
        dangerous: bool = False,
        tags: Iterable[str] = (),
    ) -> ToolDescriptor:
        descriptor = ToolDescriptor(
            name=name,
            description=description,
            args=coerce_args(args),
            category=category,
            dangerous=dangerous,
            tags=tuple(tags),
        )
        self.register(descriptor, handler)
        return descriptor

    def lookup(self, name: str) -> RegisteredTool | None:
        with self._lock:
            return self._tools.get(name)

    def all_names(self) -> list[str]:
        with self._lock:
            return list(self._tools.keys())

    def all_descriptors(self) -> list[ToolDescriptor]:
        with self._lock:
            return [t.descriptor for t in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)


@dataclass
class ContextRegistry:
    """Name -> (descriptor, zero-argument supplier)."""

    _contexts: dict[str, RegisteredContext] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(self, descriptor: ContextDescriptor, supplier: ContextSupplier) -> None:
        if not callable(supplier):
            raise TypeError("supplier must be callable")
        with self._lock:
            self._contexts[descriptor.name] = RegisteredContext(descriptor=descriptor, supplier=supplier)

    def register_context(
        self,
        name: str,
        description: str,
        format: ContextFormat,
        supplier: ContextSupplier,
    ) -> ContextDescriptor:
        descriptor = ContextDescriptor(name=name, description=description, format=format)
        self.register(descriptor, supplier)
        return descriptor

    def lookup(self, name: str) -> RegisteredContext | None:
        with self._lock:
            return self._contexts.get(name)

    def all_names(self) -> list[str]:
        with self._lock:
            return list(self._contexts.keys())

    def all_descriptors(self) -> list[ContextDescriptor]:
        with self._lock:
            return [c.descriptor for c in self._contexts.values()]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._contexts

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)
