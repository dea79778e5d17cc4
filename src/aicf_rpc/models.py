from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence, Union

from .errors import ErrorKind


class Operation(str, Enum):
    HANDSHAKE = "handshake"
    LIST_CAPABILITIES = "listCapabilities"
    INVOKE_TOOL = "invokeTool"
    GET_TOOL_INFO = "getToolInfo"
    GET_CONTEXT = "getContext"


# Positional (compact format) or named (JSON-RPC) arguments.
Arguments = Union[Sequence[Any], Mapping[str, Any]]


@dataclass(frozen=True)
class CanonicalRequest:
    """Codec-independent request handed to the dispatcher."""

    operation: Operation
    request_id: Any | None = None
    name: str | None = None
    arguments: Arguments = field(default_factory=dict)
    timeout_s: float | None = None
    client: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class Success:
    payload: Any


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    details: Any | None = None


@dataclass(frozen=True)
class CanonicalResponse:
    request_id: Any | None
    outcome: Success | Failure

    def __post_init__(self) -> None:
        if not isinstance(self.outcome, (Success, Failure)):
            raise TypeError("outcome must be Success or Failure")

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Success)

    @property
    def payload(self) -> Any:
        return self.outcome.payload if isinstance(self.outcome, Success) else None

    @property
    def error(self) -> Failure | None:
        return self.outcome if isinstance(self.outcome, Failure) else None

    @classmethod
    def success(cls, request_id: Any | None, payload: Any) -> "CanonicalResponse":
        return cls(request_id=request_id, outcome=Success(payload))

    @classmethod
    def failure(
        cls,
        request_id: Any | None,
        kind: ErrorKind,
        message: str,
        details: Any | None = None,
    ) -> "CanonicalResponse":
        return cls(request_id=request_id, outcome=Failure(kind=kind, message=message, details=details))
