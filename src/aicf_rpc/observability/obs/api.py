from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Protocol

from ..trace.context import TraceContext
from ..trace.envelope import SPAN_PREFIX, EventRecord, SpanRecord, TraceEnvelope


class ObsSink(Protocol):
    def on_event(self, record: dict[str, Any]) -> None: ...

    def on_metric(self, record: dict[str, Any]) -> None: ...

    def on_span_end(self, record: dict[str, Any]) -> None: ...

    def on_trace_end(self, envelope: TraceEnvelope) -> None: ...


_SINK: ObsSink | None = None


def set_sink(sink: ObsSink | None) -> None:
    global _SINK
    _SINK = sink


def get_sink() -> ObsSink | None:
    return _SINK


def _open_span_id(ctx: TraceContext) -> str | None:
    cur = ctx.current_span()
    return cur.span_id if cur else None


@contextmanager
def span(name: str, attrs: dict[str, Any] | None = None) -> Iterator[SpanRecord | None]:
    """Open a span on the active trace; a no-op outside a request."""
    ctx = TraceContext.current()
    if ctx is None:
        yield None
        return

    try:
        with ctx.start_span(name, attrs) as s:
            yield s
    finally:
        if _SINK is not None:
            record = {k: v for k, v in s.to_dict().items() if k != "events"}
            record["trace_id"] = ctx.trace_id
            _SINK.on_span_end(record)


@contextmanager
def operation(op: str, name: str | None = None) -> Iterator[SpanRecord | None]:
    """Span `rpc.<op>` around one dispatched operation."""
    attrs: dict[str, Any] = {"operation": op}
    if name:
        attrs["name"] = name
    with span(f"{SPAN_PREFIX}{op}", attrs) as s:
        yield s


def event(kind: str, attrs: dict[str, Any] | None = None) -> None:
    ctx = TraceContext.current()
    if ctx is None:
        return
    ev: EventRecord = ctx.add_event(kind, attrs)
    if _SINK is not None:
        _SINK.on_event({"trace_id": ctx.trace_id, "span_id": _open_span_id(ctx), **ev.to_dict()})


def metric(name: str, value: float | int, attrs: dict[str, Any] | None = None) -> None:
    """Record a numeric sample; it is kept on the trace as a `metric` event."""
    ctx = TraceContext.current()
    if ctx is None:
        return
    ev = ctx.add_event("metric", {"name": name, "value": value, **(attrs or {})})
    if _SINK is not None:
        _SINK.on_metric(
            {
                "trace_id": ctx.trace_id,
                "span_id": _open_span_id(ctx),
                "ts": ev.ts,
                "name": name,
                "value": value,
                "attrs": dict(attrs or {}),
            }
        )


def mark_error() -> None:
    ctx = TraceContext.current()
    if ctx is not None:
        ctx.mark_error()


def failure(kind: str, message: str) -> None:
    """A handled failure: `rpc.failure` event plus an error mark on the open span."""
    event("rpc.failure", {"kind": kind, "message": message})
    mark_error()
