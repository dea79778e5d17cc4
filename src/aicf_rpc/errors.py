from __future__ import annotations

from enum import Enum
from typing import Any

from .jsonrpc.codec import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR


# AIP application codes (shared by both wire formats where they apply).
NOT_FOUND = 404
TOOL_EXECUTION_FAILED = 1001
CONTEXT_NOT_AVAILABLE = 1002

# Compact format uses HTTP-flavoured codes.
AICF_BAD_REQUEST = 400
AICF_NOT_FOUND = 404
AICF_SERVER_ERROR = 500


class ErrorKind(str, Enum):
    MALFORMED = "malformed"
    INVALID_PARAMS = "invalid_params"
    METHOD_NOT_FOUND = "method_not_found"
    NOT_FOUND = "not_found"
    CONTEXT_NOT_AVAILABLE = "context_not_available"
    EXECUTION_FAILED = "execution_failed"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


AICF_CODES: dict[ErrorKind, int] = {
    ErrorKind.MALFORMED: AICF_BAD_REQUEST,
    ErrorKind.INVALID_PARAMS: AICF_BAD_REQUEST,
    ErrorKind.METHOD_NOT_FOUND: AICF_BAD_REQUEST,
    ErrorKind.NOT_FOUND: AICF_NOT_FOUND,
    ErrorKind.CONTEXT_NOT_AVAILABLE: AICF_NOT_FOUND,
    ErrorKind.EXECUTION_FAILED: AICF_SERVER_ERROR,
    ErrorKind.TIMEOUT: AICF_SERVER_ERROR,
    ErrorKind.INTERNAL: AICF_SERVER_ERROR,
}

JSONRPC_CODES: dict[ErrorKind, int] = {
    ErrorKind.MALFORMED: PARSE_ERROR,
    ErrorKind.INVALID_PARAMS: INVALID_PARAMS,
    ErrorKind.METHOD_NOT_FOUND: METHOD_NOT_FOUND,
    ErrorKind.NOT_FOUND: NOT_FOUND,
    ErrorKind.CONTEXT_NOT_AVAILABLE: CONTEXT_NOT_AVAILABLE,
    ErrorKind.EXECUTION_FAILED: TOOL_EXECUTION_FAILED,
    ErrorKind.TIMEOUT: TOOL_EXECUTION_FAILED,
    ErrorKind.INTERNAL: INTERNAL_ERROR,
}


class RpcAppError(Exception):
    """Error raised intentionally inside the dispatch core.

    Carries an `ErrorKind` instead of a numeric code; each wire format maps the
    kind to its own code table when the failure is encoded.
    """

    def __init__(self, kind: ErrorKind, message: str, data: Any | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.data = data


def tool_not_found(name: str) -> RpcAppError:
    return RpcAppError(ErrorKind.NOT_FOUND, f"Tool not found: {name}", {"tool": name})


def context_not_available(name: str, data: Any | None = None) -> RpcAppError:
    return RpcAppError(ErrorKind.CONTEXT_NOT_AVAILABLE, f"Context not available: {name}", data)


def tool_execution_failed(tool: str, message: str, data: Any | None = None) -> RpcAppError:
    return RpcAppError(ErrorKind.EXECUTION_FAILED, f"Tool execution failed: {tool} - {message}", data)


def method_not_found(method: str) -> RpcAppError:
    return RpcAppError(ErrorKind.METHOD_NOT_FOUND, f"Method not found: {method}", {"method": method})


def map_exception(exc: Exception) -> RpcAppError:
    """Map an arbitrary exception to an `RpcAppError`.

    - RpcAppError passes through unchanged.
    - TimeoutError becomes a timeout failure.
    - Everything else is an internal error; only the exception type leaks.
    """
    if isinstance(exc, RpcAppError):
        return exc
    if isinstance(exc, TimeoutError):
        return RpcAppError(ErrorKind.TIMEOUT, "deadline exceeded", {"exc_type": type(exc).__name__})
    return RpcAppError(ErrorKind.INTERNAL, "internal error", {"exc_type": type(exc).__name__})


def aicf_code(kind: ErrorKind) -> int:
    return AICF_CODES.get(kind, AICF_SERVER_ERROR)


def jsonrpc_code(kind: ErrorKind) -> int:
    return JSONRPC_CODES.get(kind, INTERNAL_ERROR)


def attach_trace_id(data: Any | None, trace_id: str | None) -> Any | None:
    """Best-effort inject `trace_id` into error data."""
    if not trace_id:
        return data
    if data is None:
        return {"trace_id": trace_id}
    if isinstance(data, dict) and "trace_id" not in data:
        out = dict(data)
        out["trace_id"] = trace_id
        return out
    return data


__all__ = [
    "ErrorKind",
    "RpcAppError",
    "AICF_CODES",
    "JSONRPC_CODES",
    "INVALID_REQUEST",
    "NOT_FOUND",
    "TOOL_EXECUTION_FAILED",
    "CONTEXT_NOT_AVAILABLE",
    "aicf_code",
    "jsonrpc_code",
    "map_exception",
    "attach_trace_id",
    "tool_not_found",
    "context_not_available",
    "tool_execution_failed",
    "method_not_found",
]
