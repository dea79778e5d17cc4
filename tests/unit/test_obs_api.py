from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from aicf_rpc.observability.obs import api as obs
from aicf_rpc.observability.trace.context import TraceContext
from aicf_rpc.observability.trace.envelope import TraceEnvelope
from aicf_rpc.server import RpcServer


@dataclass
class FakeSink:
    events: list[dict] = field(default_factory=list)
    metrics: list[dict] = field(default_factory=list)
    span_ends: list[dict] = field(default_factory=list)
    trace_ends: list[TraceEnvelope] = field(default_factory=list)

    def on_event(self, record: dict) -> None:
        self.events.append(record)

    def on_metric(self, record: dict) -> None:
        self.metrics.append(record)

    def on_span_end(self, record: dict) -> None:
        self.span_ends.append(record)

    def on_trace_end(self, envelope: TraceEnvelope) -> None:
        self.trace_ends.append(envelope)


def test_obs_api_without_trace_is_noop() -> None:
    with obs.span("rpc.test") as s:
        obs.event("rpc.request", {"x": 1})
        obs.metric("tool.latency_ms", 1.0)
        obs.mark_error()
    assert s is None


def test_obs_api_no_sink_no_crash() -> None:
    ctx = TraceContext.new("t-obs-1")
    with TraceContext.activate(ctx):
        with obs.span("rpc.test"):
            obs.event("rpc.request", {"x": 1})
            obs.metric("tool.latency_ms", 12.3, {"tool": "t"})
        env = ctx.finish()

    assert env.trace_id == "t-obs-1"
    assert len(env.spans) == 1
    assert [e.kind for e in env.spans[0].events] == ["rpc.request", "metric"]


def test_obs_api_with_sink_captures_records() -> None:
    sink = FakeSink()
    obs.set_sink(sink)
    ctx = TraceContext.new("t-obs-2", wire_format="aicf")
    with TraceContext.activate(ctx):
        with obs.span("rpc.test", {"p": "v"}):
            obs.event("rpc.success", {"a": 1})
            obs.metric("count", 1)
        ctx.finish()

    assert sink.span_ends[0]["name"] == "rpc.test"
    assert sink.span_ends[0]["trace_id"] == "t-obs-2"
    assert sink.events[0]["kind"] == "rpc.success"
    assert sink.metrics[0]["name"] == "count"
    assert len(sink.trace_ends) == 1
    assert sink.trace_ends[0].wire_format == "aicf"


def test_mark_error_flags_current_span() -> None:
    ctx = TraceContext.new("t-obs-3")
    with TraceContext.activate(ctx):
        with obs.span("rpc.invokeTool"):
            obs.mark_error()
        env = ctx.finish()
    assert env.status == "error"
    assert env.spans[0].status == "error"


def test_server_emits_one_trace_per_request(server: RpcServer) -> None:
    sink = FakeSink()
    obs.set_sink(sink)

    assert asyncio.run(server.handle_aicf("CALL|echo.tool|hi")).startswith("OK|")
    assert asyncio.run(server.handle_aicf("CALL|missing")).startswith("ERR|404|")

    ok, failed = sink.trace_ends
    assert ok.status == "ok"
    assert [s.name for s in ok.spans] == ["rpc.invokeTool"]
    kinds = list(ok.iter_event_kinds())
    assert "tool.invoke" in kinds
    assert "rpc.success" in kinds
    ok.validate(strict=True)

    assert failed.status == "error"
    assert "rpc.failure" in list(failed.iter_event_kinds())
    assert any(m["name"] == "tool.latency_ms" for m in sink.metrics)


def test_broken_sink_does_not_fail_request(server: RpcServer, mocker) -> None:
    sink = mocker.Mock()
    sink.on_trace_end.side_effect = RuntimeError("disk gone")
    obs.set_sink(sink)

    out = asyncio.run(server.handle_aicf("LIST"))

    assert out == "TOOLS|echo.tool"
    sink.on_trace_end.assert_called_once()


def test_operation_span_and_failure() -> None:
    ctx = TraceContext.new("t-obs-4")
    with TraceContext.activate(ctx):
        with obs.operation("invokeTool", "fs.read") as s:
            obs.failure("not_found", "Tool not found: fs.read")
        env = ctx.finish()

    assert s is not None
    assert s.name == "rpc.invokeTool"
    assert s.attrs == {"operation": "invokeTool", "name": "fs.read"}
    assert s.status == "error"
    assert [e.kind for e in s.events] == ["rpc.failure"]
    env.validate(strict=True)
