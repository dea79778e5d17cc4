"""Compact pipe-delimited wire format (AICF-RPC)."""

from .codec import (
    AicfCodecError,
    decode_request,
    encode_failure,
    encode_request,
    encode_success,
    encode_tool_info,
    encode_tool_list,
    escape,
    is_aicf_format,
    is_valid_request,
    parse_argument,
    split_fields,
    unescape,
)
from .models import UNDEFINED, AicfCommand, AicfRequest

__all__ = [
    "AicfCommand",
    "AicfRequest",
    "AicfCodecError",
    "UNDEFINED",
    "decode_request",
    "encode_request",
    "encode_success",
    "encode_failure",
    "encode_tool_list",
    "encode_tool_info",
    "escape",
    "unescape",
    "split_fields",
    "parse_argument",
    "is_valid_request",
    "is_aicf_format",
]
