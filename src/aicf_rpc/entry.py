from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import Sequence

from .config import Settings, load_settings
from .dispatcher import ServerInfo
from .observability.obs import api as obs
from .observability.sinks.jsonl import JsonlSink
from .server import RpcServer
from .tools import register_builtin_tools


def build_server(settings: Settings) -> RpcServer:
    """Wire a server from settings and register the built-in tools."""
    server = RpcServer(
        server_info=ServerInfo(
            name=settings.server.name,
            version=settings.server.version,
            metadata=dict(settings.server.metadata),
        ),
        session_ttl_s=float(settings.sessions.ttl_seconds),
        default_timeout_s=settings.dispatch.default_timeout_s,
    )
    register_builtin_tools(server)
    return server


def build_observability(settings: Settings) -> JsonlSink:
    sink = JsonlSink(settings.paths.logs_dir)
    obs.set_sink(sink)
    return sink


async def run_lines(server: RpcServer, lines: Sequence[str]) -> list[str]:
    """Evaluate wire lines one by one (format auto-detected per line)."""
    out: list[str] = []
    for line in lines:
        out.append(await server.handle_line(line))
    return out


def main(argv: Sequence[str] | None = None) -> int:
    lines = list(sys.argv[1:] if argv is None else argv)
    settings_path = os.environ.get("AICF_RPC_SETTINGS_PATH", "config/settings.yaml")
    settings = load_settings(settings_path) if Path(settings_path).exists() else Settings()

    build_observability(settings)
    server = build_server(settings)
    for response in asyncio.run(run_lines(server, lines)):
        sys.stdout.write(response + "\n")
    sys.stdout.flush()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
