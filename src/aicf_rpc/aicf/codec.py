from __future__ import annotations

import json
import re
from typing import Any, Iterable

from .models import UNDEFINED, AicfCommand, AicfRequest


FIELD_SEP = "|"
ESCAPE_CHAR = "\\"

# Decode direction: escape letter -> literal character.
_UNESCAPES = {"\\": "\\", "|": "|", "n": "\n", "t": "\t"}
_NUMBER_RE = re.compile(r"-?[0-9]+(\.[0-9]+)?")


class AicfCodecError(ValueError):
    def __init__(self, message: str, *, data: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data


# --- escaping ---


def escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace("|", "\\|")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )


def unescape(raw: str) -> str:
    """Decode escape sequences in a single field (Normal/Escaped scan)."""
    out: list[str] = []
    escaped = False
    for ch in raw:
        if escaped:
            out.append(_UNESCAPES.get(ch, ch))
            escaped = False
        elif ch == ESCAPE_CHAR:
            escaped = True
        else:
            out.append(ch)
    if escaped:
        # Dangling backslash at end of field: keep it literally.
        out.append(ESCAPE_CHAR)
    return "".join(out)


def split_fields(line: str) -> list[str]:
    """
    Split a line on unescaped pipes.

    A backslash consumes the next character verbatim, so `\\|` never acts as a
    boundary. Escape sequences are left intact in the returned raw fields; a
    trailing unescaped pipe yields one extra empty field.
    """
    fields: list[str] = []
    buf: list[str] = []
    escaped = False
    for ch in line:
        if escaped:
            buf.append(ch)
            escaped = False
        elif ch == ESCAPE_CHAR:
            buf.append(ch)
            escaped = True
        elif ch == FIELD_SEP:
            fields.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
    fields.append("".join(buf))
    return fields


# --- decode ---


def parse_argument(raw: str) -> Any:
    """Unescape one CALL field and infer its type."""
    text = unescape(raw)

    if (text.startswith("{") and text.endswith("}")) or (text.startswith("[") and text.endswith("]")):
        try:
            return json.loads(text)
        except ValueError:
            return text

    if _NUMBER_RE.fullmatch(text):
        return float(text) if "." in text else int(text)

    if text == "true":
        return True
    if text == "false":
        return False
    if text == "null":
        return None
    if text == "undefined":
        return UNDEFINED
    return text


def decode_request(line: str) -> AicfRequest:
    """
    Decode one compact request line: `LIST`, `INFO|tool` or `CALL|tool|arg...`.
    """
    if not isinstance(line, str) or not line.strip():
        raise AicfCodecError("Invalid AICF request: input must be a non-empty string")

    parts = split_fields(line.strip())
    token = unescape(parts[0]).upper()
    try:
        command = AicfCommand(token)
    except ValueError:
        raise AicfCodecError(f"Invalid AICF command: {token}", data={"command": token}) from None

    if command is AicfCommand.LIST:
        return AicfRequest(command=command)

    if len(parts) < 2:
        raise AicfCodecError(f"{command.value} command requires tool name")
    tool = unescape(parts[1])
    if not tool:
        raise AicfCodecError(f"{command.value} command requires tool name")

    if command is AicfCommand.INFO:
        return AicfRequest(command=command, tool=tool)
    return AicfRequest(command=command, tool=tool, arguments=[parse_argument(p) for p in parts[2:]])


def is_valid_request(line: str) -> bool:
    try:
        decode_request(line)
    except AicfCodecError:
        return False
    return True


def is_aicf_format(line: Any) -> bool:
    """Cheap format sniff used to route a raw line to the compact codec."""
    if not isinstance(line, str) or not line:
        return False
    s = line.strip().upper()
    return s.startswith("CALL|") or s.startswith("LIST") or s.startswith("INFO|")


# --- encode ---


def _json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def encode_value(value: Any) -> str:
    """Serialize a response payload field."""
    if value is None or value is UNDEFINED:
        return ""
    if isinstance(value, str):
        return escape(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list, tuple)):
        return escape(_json(value))
    return escape(str(value))


def encode_argument(value: Any) -> str:
    """Serialize a request argument (inverse of `parse_argument`)."""
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return escape(value)
    if isinstance(value, (dict, list, tuple)):
        return escape(_json(value))
    return escape(str(value))


def encode_request(req: AicfRequest) -> str:
    parts = [req.command.value]
    if req.tool:
        parts.append(escape(req.tool))
    for arg in req.arguments:
        parts.append(encode_argument(arg))
    return FIELD_SEP.join(parts)


def encode_success(payload: Any) -> str:
    return f"OK|{encode_value(payload)}"


def encode_failure(code: int, message: str) -> str:
    return f"ERR|{int(code)}|{escape(message or 'Unknown error')}"


def encode_tool_list(names: Iterable[str]) -> str:
    return "TOOLS|" + FIELD_SEP.join(escape(n) for n in names)


def encode_tool_info(name: str, description: str, args: Iterable[tuple[str, str]]) -> str:
    parts = ["TOOL", escape(name), escape(description or "")]
    parts.extend(escape(f"{arg_name}:{arg_type}") for arg_name, arg_type in args)
    return FIELD_SEP.join(parts)
