from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
import contextvars
import time
import traceback
import uuid
from typing import Any, Iterator

from .envelope import EventRecord, SpanRecord, TraceEnvelope


_ACTIVE: contextvars.ContextVar["TraceContext | None"] = contextvars.ContextVar(
    "aicf_rpc_trace", default=None
)


def _now() -> float:
    return time.time()


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


@dataclass
class TraceContext:
    """Trace of a single wire request.

    Activation is per asyncio task (contextvars), so concurrent requests never
    share spans. `finish()` seals the trace and hands it to the installed sink.
    """

    trace_id: str
    start_ts: float
    trace_type: str = "rpc"
    wire_format: str = "unknown"
    request_id: Any | None = None
    spans: list[SpanRecord] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)
    _open: list[SpanRecord] = field(default_factory=list, repr=False)

    @classmethod
    def new(
        cls,
        trace_id: str | None = None,
        *,
        wire_format: str = "unknown",
        request_id: Any | None = None,
    ) -> "TraceContext":
        return cls(
            trace_id=trace_id or _new_id("trace"),
            start_ts=_now(),
            wire_format=wire_format,
            request_id=request_id,
        )

    @classmethod
    def current(cls) -> "TraceContext | None":
        return _ACTIVE.get()

    @classmethod
    @contextmanager
    def activate(cls, ctx: "TraceContext") -> Iterator["TraceContext"]:
        token = _ACTIVE.set(ctx)
        try:
            yield ctx
        finally:
            _ACTIVE.reset(token)

    def current_span(self) -> SpanRecord | None:
        return self._open[-1] if self._open else None

    @contextmanager
    def start_span(self, name: str, attrs: dict[str, Any] | None = None) -> Iterator[SpanRecord]:
        parent = self.current_span()
        s = SpanRecord(
            span_id=_new_id("span"),
            name=name,
            parent_span_id=parent.span_id if parent else None,
            start_ts=_now(),
            attrs=dict(attrs or {}),
        )
        self.spans.append(s)
        self._open.append(s)
        try:
            yield s
        except Exception as e:
            s.status = "error"
            self.add_event(
                "error",
                {
                    "exc_type": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(limit=5),
                },
            )
            raise
        finally:
            if self._open and self._open[-1] is s:
                self._open.pop()
            s.close(_now())

    def add_event(self, kind: str, attrs: dict[str, Any] | None = None) -> EventRecord:
        ev = EventRecord(ts=_now(), kind=(kind or "").strip(), attrs=dict(attrs or {}))
        cur = self.current_span()
        (cur.events if cur is not None else self.events).append(ev)
        return ev

    def mark_error(self) -> None:
        """Flag the innermost open span as failed without raising."""
        cur = self.current_span()
        if cur is not None:
            cur.status = "error"

    def _close_leaked(self) -> None:
        if not self._open:
            return
        self.events.append(EventRecord(ts=_now(), kind="warn.span_leak", attrs={"open_span_count": len(self._open)}))
        now = _now()
        while self._open:
            self._open.pop().close(now, failed=True)

    def finish(self) -> TraceEnvelope:
        self._close_leaked()
        envelope = TraceEnvelope(
            trace_id=self.trace_id,
            trace_type=self.trace_type,
            status="error" if any(s.status == "error" for s in self.spans) else "ok",
            start_ts=self.start_ts,
            end_ts=_now(),
            wire_format=self.wire_format,
            request_id=self.request_id,
            spans=list(self.spans),
            events=list(self.events),
        )

        from ..obs import api as obs

        sink = obs.get_sink()
        if sink is not None:
            try:
                sink.on_trace_end(envelope)
            except Exception:
                # A broken sink must not fail the request it traced.
                pass
        return envelope
