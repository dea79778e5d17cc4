from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class _Undefined:
    """Marker for the compact format's `undefined` literal (an absent value)."""

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


class AicfCommand(str, Enum):
    CALL = "CALL"
    LIST = "LIST"
    INFO = "INFO"


@dataclass(frozen=True)
class AicfRequest:
    command: AicfCommand
    tool: str | None = None
    arguments: list[Any] = field(default_factory=list)
