from .codec import (
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
    METHOD_HANDSHAKE,
    METHOD_CAPABILITIES_LIST,
    METHOD_TOOL_INVOKE,
    METHOD_CONTEXT_GET,
    JsonRpcCodecError,
    decode_request,
    encode_error,
    encode_request,
    encode_response,
    is_valid_request,
    request_id_of,
    to_request,
)
from .models import JsonRpcError, JsonRpcRequest, JsonRpcResponse

__all__ = [
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcError",
    "JsonRpcCodecError",
    "decode_request",
    "encode_request",
    "encode_response",
    "encode_error",
    "is_valid_request",
    "request_id_of",
    "to_request",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "METHOD_HANDSHAKE",
    "METHOD_CAPABILITIES_LIST",
    "METHOD_TOOL_INVOKE",
    "METHOD_CONTEXT_GET",
]
