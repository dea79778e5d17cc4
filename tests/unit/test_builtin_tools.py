from __future__ import annotations

import asyncio
import json

from aicf_rpc.config import Settings
from aicf_rpc.entry import build_server, run_lines
from aicf_rpc.server import RpcServer
from aicf_rpc.tools import register_builtin_tools


def _builtin() -> RpcServer:
    srv = RpcServer()
    register_builtin_tools(srv)
    return srv


def test_builtins_listed() -> None:
    assert asyncio.run(_builtin().handle_aicf("LIST")) == "TOOLS|rpc.ping|rpc.echo"


def test_ping_and_echo() -> None:
    srv = _builtin()
    assert asyncio.run(srv.handle_aicf("CALL|rpc.ping")) == "OK|pong"
    assert asyncio.run(srv.handle_aicf("CALL|rpc.echo|hello")) == 'OK|{"message":"hello"}'
    assert asyncio.run(srv.handle_aicf("INFO|rpc.echo")) == (
        "TOOL|rpc.echo|Return the named arguments the call resolved to.|message:string"
    )


def test_server_info_context() -> None:
    srv = _builtin()
    req = {"jsonrpc": "2.0", "id": 1, "method": "aip.context.get", "params": {"context": "server.info"}}
    out = asyncio.run(srv.handle_jsonrpc(req))
    assert out["result"]["format"] == "json"
    assert out["result"]["data"] == {"name": "aicf-rpc", "version": "0.1.0", "capabilities": ["tool", "context"]}


def test_build_server_applies_settings() -> None:
    settings = Settings.from_dict(
        {"server": {"name": "named", "version": "3"}, "sessions": {"ttl_seconds": 5}, "dispatch": {"default_timeout_ms": 250}}
    )
    srv = build_server(settings)
    assert srv.server_info.name == "named"
    assert srv.sessions.ttl_s == 5.0
    assert srv.dispatcher.default_timeout_s == 0.25

    hs = '{"jsonrpc":"2.0","id":"h","method":"aip.handshake"}'
    ping, handshake = asyncio.run(run_lines(srv, ["CALL|rpc.ping", hs]))
    assert ping == "OK|pong"
    assert json.loads(handshake)["result"]["server"]["name"] == "named"
