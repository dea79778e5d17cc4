from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from ..trace.envelope import TraceEnvelope


def _to_jsonable(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    return repr(obj)


class JsonlSink:
    """
    Append-only JSONL sink for RPC trace envelopes.

    If path_or_dir is a directory (or has no `.jsonl` suffix), `rpc_traces.jsonl`
    inside it is used.
    """

    def __init__(self, path_or_dir: str | Path) -> None:
        p = Path(path_or_dir)
        self.path = p if p.suffix == ".jsonl" else p / "rpc_traces.jsonl"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def write(self, envelope: TraceEnvelope) -> None:
        line = json.dumps(envelope.to_dict(), ensure_ascii=True, default=_to_jsonable)
        with self._lock:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")

    def read_all(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        out: list[dict[str, Any]] = []
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    out.append(json.loads(line))
        return out

    # --- ObsSink compatibility ---
    def on_event(self, record: dict[str, Any]) -> None:  # noqa: D401
        """No-op; this sink records whole envelopes only."""
        return

    def on_metric(self, record: dict[str, Any]) -> None:  # noqa: D401
        """No-op; this sink records whole envelopes only."""
        return

    def on_span_end(self, record: dict[str, Any]) -> None:  # noqa: D401
        """No-op; this sink records whole envelopes only."""
        return

    def on_trace_end(self, envelope: TraceEnvelope) -> None:
        self.write(envelope)
