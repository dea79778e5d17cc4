from __future__ import annotations

import json
from typing import Any

from .models import JSONRPC_VERSION, JsonRpcError, JsonRpcRequest, JsonRpcResponse


# JSON-RPC 2.0 standard error codes.
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Fixed AIP method table.
METHOD_HANDSHAKE = "aip.handshake"
METHOD_CAPABILITIES_LIST = "aip.capabilities.list"
METHOD_TOOL_INVOKE = "aip.tool.invoke"
METHOD_CONTEXT_GET = "aip.context.get"


class JsonRpcCodecError(ValueError):
    def __init__(self, code: int, message: str, *, req_id: Any | None = None, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.req_id = req_id
        self.data = data


def _is_valid_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int, float))


def is_valid_request(obj: Any) -> bool:
    """Structural pre-check of a decoded envelope; never raises."""
    if not isinstance(obj, dict):
        return False
    if obj.get("jsonrpc") != JSONRPC_VERSION:
        return False
    if not _is_valid_id(obj.get("id")):
        return False
    method = obj.get("method")
    return isinstance(method, str) and bool(method)


def request_id_of(obj: Any) -> Any | None:
    """Id to echo in an error response, or None when the request has no usable id."""
    if isinstance(obj, dict) and _is_valid_id(obj.get("id")):
        return obj["id"]
    return None


def to_request(obj: dict[str, Any]) -> JsonRpcRequest:
    """Build a request from an envelope that already passed `is_valid_request`."""
    return JsonRpcRequest(
        jsonrpc=JSONRPC_VERSION,
        method=obj["method"],
        params=obj.get("params"),
        id=obj["id"],
    )


def decode_request(line: str) -> Any:
    """
    Parse one JSON-RPC envelope from text.

    Only JSON syntax is checked here; the structure is checked by `is_valid_request`.
    """
    try:
        return json.loads(line)
    except Exception as e:
        raise JsonRpcCodecError(PARSE_ERROR, "parse error", data=str(e)) from e


def encode_request(method: str, params: Any | None, req_id: str | int) -> str:
    d: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": req_id, "method": method}
    if params is not None:
        d["params"] = params
    return json.dumps(d, ensure_ascii=False, separators=(",", ":"))


def encode_response(resp: JsonRpcResponse) -> str:
    return json.dumps(resp.to_dict(), ensure_ascii=False, separators=(",", ":"), default=str)


def encode_error(req_id: Any | None, code: int, message: str, data: Any | None = None) -> str:
    resp = JsonRpcResponse(id=req_id, error=JsonRpcError(code=code, message=message, data=data))
    return encode_response(resp)
