from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Union


ContextFormat = Literal["aicf", "json", "text", "markdown"]
CONTEXT_FORMATS: tuple[str, ...] = ("aicf", "json", "text", "markdown")

# Handlers may be plain functions or coroutine functions.
ToolHandler = Callable[[dict[str, Any]], Union[Any, Awaitable[Any]]]
ContextSupplier = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class ArgSpec:
    name: str
    type: str = "any"
    required: bool = False
    description: str = ""


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    args: tuple[ArgSpec, ...] = ()
    category: str | None = None
    dangerous: bool = False
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("tool name must be non-empty string")
        seen: set[str] = set()
        for a in self.args:
            if a.name in seen:
                raise ValueError(f"duplicate argument name: {a.name}")
            seen.add(a.name)

    @property
    def arg_names(self) -> list[str]:
        return [a.name for a in self.args]

    def to_capability(self) -> dict[str, Any]:
        from .schema import args_to_json_schema

        d: dict[str, Any] = {
            "type": "tool",
            "name": self.name,
            "description": self.description,
            "schema": args_to_json_schema(self.args),
        }
        if self.dangerous:
            d["dangerous"] = True
        if self.category:
            d["category"] = self.category
        if self.tags:
            d["tags"] = list(self.tags)
        return d


@dataclass(frozen=True)
class ContextDescriptor:
    name: str
    description: str
    format: ContextFormat = "json"

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("context name must be non-empty string")
        if self.format not in CONTEXT_FORMATS:
            raise ValueError(f"unsupported context format: {self.format}")

    def to_capability(self) -> dict[str, Any]:
        return {
            "type": "context",
            "name": self.name,
            "description": self.description,
            "format": self.format,
        }


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: ToolDescriptor
    handler: ToolHandler = field(compare=False)


@dataclass(frozen=True)
class RegisteredContext:
    descriptor: ContextDescriptor
    supplier: ContextSupplier = field(compare=False)
