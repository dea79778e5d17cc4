from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator


JsonDict = dict[str, Any]

TRACE_SCHEMA_VERSION = "rpc-trace.v1"
SPAN_PREFIX = "rpc."

# Event kinds emitted by the dispatch core; anything else fails strict validation.
ALLOWED_EVENT_KINDS: frozenset[str] = frozenset(
    {
        "rpc.request",
        "rpc.handshake",
        "rpc.success",
        "rpc.failure",
        "tool.invoke",
        "tool.timeout",
        "context.get",
        "session.sweep",
        "metric",
        "error",
        "warn.span_leak",
    }
)


@dataclass(frozen=True)
class EventRecord:
    ts: float
    kind: str
    attrs: JsonDict = field(default_factory=dict)

    def to_dict(self) -> JsonDict:
        return {"ts": self.ts, "kind": self.kind, "attrs": self.attrs}


@dataclass
class SpanRecord:
    span_id: str
    name: str
    parent_span_id: str | None
    start_ts: float
    end_ts: float | None = None
    status: str = "ok"  # ok|error
    attrs: JsonDict = field(default_factory=dict)
    events: list[EventRecord] = field(default_factory=list)

    @property
    def closed(self) -> bool:
        return self.end_ts is not None

    @property
    def elapsed_ms(self) -> float | None:
        if self.end_ts is None:
            return None
        return (self.end_ts - self.start_ts) * 1000.0

    def close(self, ts: float, *, failed: bool = False) -> None:
        if failed:
            self.status = "error"
        if self.end_ts is None:
            self.end_ts = ts

    def to_dict(self) -> JsonDict:
        return {
            "span_id": self.span_id,
            "name": self.name,
            "parent_span_id": self.parent_span_id,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "status": self.status,
            "attrs": self.attrs,
            "events": [e.to_dict() for e in self.events],
        }


@dataclass
class TraceEnvelope:
    """One finished request: every span in open order plus trace-level events."""

    trace_id: str
    start_ts: float
    end_ts: float
    trace_type: str = "rpc"
    status: str = "ok"  # ok|error
    wire_format: str = "unknown"  # aicf|jsonrpc|unknown
    request_id: Any | None = None
    spans: list[SpanRecord] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)
    schema_version: str = TRACE_SCHEMA_VERSION

    def to_dict(self) -> JsonDict:
        return {
            "schema_version": self.schema_version,
            "trace_id": self.trace_id,
            "trace_type": self.trace_type,
            "status": self.status,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "wire_format": self.wire_format,
            "request_id": self.request_id,
            "spans": [s.to_dict() for s in self.spans],
            "events": [e.to_dict() for e in self.events],
        }

    def iter_event_kinds(self) -> Iterator[str]:
        for s in self.spans:
            yield from (ev.kind for ev in s.events)
        yield from (ev.kind for ev in self.events)

    def validate(self, *, strict: bool = True) -> None:
        """Raise ValueError on a malformed envelope.

        Non-strict mode only checks identity; strict mode also requires `rpc.`
        span names and known event kinds.
        """
        if not self.trace_id:
            raise ValueError("trace_id missing")
        if not strict:
            return
        bad_spans = [s.name for s in self.spans if not s.name.startswith(SPAN_PREFIX)]
        if bad_spans:
            raise ValueError(f"span names must start with {SPAN_PREFIX!r}: {bad_spans}")
        unknown = sorted({k for k in self.iter_event_kinds() if k not in ALLOWED_EVENT_KINDS})
        if unknown:
            raise ValueError(f"unknown event kinds: {unknown}")
