from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from aicf_rpc.server import RpcServer


def _rpc(server: RpcServer, obj: Any) -> dict[str, Any]:
    return asyncio.run(server.handle_jsonrpc(obj))


def _req(method: str, params: Any = None, req_id: Any = "1") -> dict[str, Any]:
    d: dict[str, Any] = {"jsonrpc": "2.0", "id": req_id, "method": method}
    if params is not None:
        d["params"] = params
    return d


@pytest.fixture
def sum_server() -> RpcServer:
    srv = RpcServer()
    srv.register_tool("sum", "Add two numbers", [("a", "number"), ("b", "number")], lambda args: args["a"] + args["b"])
    return srv


def test_tool_invoke_line(sum_server: RpcServer) -> None:
    line = '{"jsonrpc":"2.0","id":"7","method":"aip.tool.invoke","params":{"tool":"sum","arguments":{"a":2,"b":3}}}'
    assert asyncio.run(sum_server.handle_jsonrpc_line(line)) == '{"jsonrpc":"2.0","id":"7","result":5}'


def test_parse_error_line(sum_server: RpcServer) -> None:
    out = json.loads(asyncio.run(sum_server.handle_jsonrpc_line("{oops")))
    assert out["id"] is None
    assert out["error"]["code"] == -32700


@pytest.mark.parametrize(
    ("obj", "expected_id"),
    [
        ({"jsonrpc": "1.0", "id": "x", "method": "aip.handshake"}, "x"),
        ({"jsonrpc": "2.0", "method": "aip.handshake"}, None),
        ([1, 2], None),
    ],
)
def test_invalid_envelope(sum_server: RpcServer, obj: Any, expected_id: Any) -> None:
    out = _rpc(sum_server, obj)
    assert out["id"] == expected_id
    assert out["error"] == {"code": -32600, "message": "Invalid JSON-RPC request"}


def test_unknown_method(sum_server: RpcServer) -> None:
    out = _rpc(sum_server, _req("aip.nope"))
    assert out["error"]["code"] == -32601
    assert out["error"]["message"] == "Method not found: aip.nope"


@pytest.mark.parametrize(
    ("params", "message"),
    [
        (None, "Missing params for tool invocation"),
        ({"arguments": {}}, "Missing tool name"),
        ({"tool": ""}, "Missing tool name"),
        ({"tool": "sum", "arguments": [1, 2]}, "tool arguments must be an object"),
    ],
)
def test_tool_invoke_invalid_params(sum_server: RpcServer, params: Any, message: str) -> None:
    out = _rpc(sum_server, _req("aip.tool.invoke", params))
    assert out["error"]["code"] == -32602
    assert out["error"]["message"] == message


def test_tool_invoke_unknown_tool(sum_server: RpcServer) -> None:
    out = _rpc(sum_server, _req("aip.tool.invoke", {"tool": "mul", "arguments": {}}, req_id=3))
    assert out["id"] == 3
    assert out["error"]["code"] == 404
    assert out["error"]["message"] == "Tool not found: mul"
    assert out["error"]["data"]["tool"] == "mul"
    assert out["error"]["data"]["trace_id"].startswith("trace_")


def test_tool_invoke_handler_failure(sum_server: RpcServer) -> None:
    out = _rpc(sum_server, _req("aip.tool.invoke", {"tool": "sum", "arguments": {"a": 1}}))
    assert out["error"]["code"] == 1001
    assert out["error"]["message"].startswith("Tool execution failed: sum - ")
    assert out["error"]["data"]["exc_type"] == "KeyError"


def test_tool_invoke_timeout_hint() -> None:
    srv = RpcServer()

    async def never(args: dict[str, Any]) -> None:
        await asyncio.Event().wait()

    srv.register_tool("slow", "", None, never)
    out = _rpc(srv, _req("aip.tool.invoke", {"tool": "slow", "timeout": 100}))
    assert out["error"]["code"] == 1001
    assert out["error"]["data"]["timeout"] is True


def test_handshake_and_capabilities(sum_server: RpcServer) -> None:
    hs = _rpc(sum_server, _req("aip.handshake", {"client": {"name": "c", "version": "1"}}))["result"]
    assert hs["version"] == "1.0.0"
    assert hs["server"]["capabilities"] == ["tool"]
    assert len(sum_server.sessions) == 1

    caps = _rpc(sum_server, _req("aip.capabilities.list"))["result"]["capabilities"]
    assert caps[0]["name"] == "sum"
    assert caps[0]["schema"]["properties"] == {"a": {"type": "number"}, "b": {"type": "number"}}


def test_context_get(sum_server: RpcServer) -> None:
    sum_server.register_context("notes", "Notes", "text", lambda: "hello")
    ok = _rpc(sum_server, _req("aip.context.get", {"context": "notes"}))
    assert ok["result"] == {"context": "notes", "format": "text", "data": "hello"}

    missing = _rpc(sum_server, _req("aip.context.get", {"context": "other"}))
    assert missing["error"]["code"] == 1002

    no_name = _rpc(sum_server, _req("aip.context.get", {}))
    assert no_name["error"]["code"] == -32602


def test_handle_line_detects_format(sum_server: RpcServer) -> None:
    assert asyncio.run(sum_server.handle_line("CALL|sum|2|3")) == "OK|5"
    assert asyncio.run(sum_server.handle_line("LIST")) == "TOOLS|sum"
    out = json.loads(asyncio.run(sum_server.handle_line(json.dumps(_req("aip.capabilities.list")))))
    assert out["result"]["capabilities"][0]["name"] == "sum"


def test_unserializable_result_becomes_internal_error() -> None:
    srv = RpcServer()
    srv.register_tool("tuple.keys", "", None, lambda args: {(1, 2): "v"})
    line = '{"jsonrpc":"2.0","id":"u","method":"aip.tool.invoke","params":{"tool":"tuple.keys"}}'
    out = json.loads(asyncio.run(srv.handle_jsonrpc_line(line)))
    assert out["id"] == "u"
    assert out["error"]["code"] == -32603
    assert out["error"]["data"] == {"exc_type": "TypeError"}


def test_lowercase_compact_command_is_detected(sum_server: RpcServer) -> None:
    assert asyncio.run(sum_server.handle_line("list")) == "TOOLS|sum"
    assert asyncio.run(sum_server.handle_line("call|sum|2|3")) == "OK|5"
