from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from aicf_rpc.observability.obs import api as obs
from aicf_rpc.server import RpcServer


@pytest.fixture
def tmp_workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Provide an isolated working directory for tests that write to disk using
    relative paths.
    """
    monkeypatch.chdir(tmp_path)
    return tmp_path


class _Clock:
    def __init__(self, now: float) -> None:
        self.now = now

    def set(self, now: float) -> None:
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def mock_clock(monkeypatch: pytest.MonkeyPatch) -> _Clock:
    """
    Freeze time.time() to a deterministic, settable value.
    """
    import time

    clock = _Clock(1_700_000_000.0)
    monkeypatch.setattr(time, "time", clock)
    return clock


@pytest.fixture(autouse=True)
def _no_obs_sink() -> Generator[None, None, None]:
    obs.set_sink(None)
    yield
    obs.set_sink(None)


@pytest.fixture
def server() -> RpcServer:
    """Server with a positional echo tool (`msg`, `count`, `flag`)."""
    srv = RpcServer()

    def echo(args: dict[str, Any]) -> dict[str, Any]:
        return args

    srv.register_tool(
        "echo.tool",
        "Echo named arguments back",
        [("msg", "string"), ("count", "number"), ("flag", "boolean")],
        echo,
    )
    return srv


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Default behavior: only run unit tests.

    If the user explicitly provides `-m ...`, we respect it and do not apply
    any extra deselection logic.
    """
    if config.option.markexpr:
        return

    deselect: list[pytest.Item] = []
    keep: list[pytest.Item] = []

    for item in items:
        if item.get_closest_marker("integration") or item.get_closest_marker("e2e"):
            deselect.append(item)
        else:
            keep.append(item)

    if deselect:
        config.hook.pytest_deselected(items=deselect)
        items[:] = keep
