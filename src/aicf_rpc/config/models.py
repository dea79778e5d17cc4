from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping


def _as_path(v: Any, default: Path) -> Path:
    if v is None:
        return default
    if isinstance(v, Path):
        return v
    if isinstance(v, str):
        return Path(v)
    raise TypeError(f"expected path-like value, got {type(v).__name__}")


def _as_int(v: Any, default: int) -> int:
    if v is None:
        return default
    if isinstance(v, bool):
        raise TypeError("expected int, got bool")
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.strip().isdigit():
        return int(v.strip())
    raise TypeError(f"expected int-like value, got {type(v).__name__}")


def _as_str(v: Any, default: str, *, key: str) -> str:
    if v is None:
        return default
    if not isinstance(v, (str, int, float)) or isinstance(v, bool):
        raise TypeError(f"{key} must be str, got {type(v).__name__}")
    return str(v)


@dataclass
class ServerSettings:
    name: str = "aicf-rpc"
    version: str = "0.1.0"
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "ServerSettings":
        d = d or {}
        metadata = d.get("metadata") or {}
        if not isinstance(metadata, Mapping):
            raise TypeError(f"server.metadata must be a mapping, got {type(metadata).__name__}")
        return cls(
            name=_as_str(d.get("name"), cls.name, key="server.name"),
            version=_as_str(d.get("version"), cls.version, key="server.version"),
            metadata=dict(metadata),
        )


@dataclass
class SessionSettings:
    ttl_seconds: int = 24 * 60 * 60

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "SessionSettings":
        d = d or {}
        ttl = _as_int(d.get("ttl_seconds"), cls.ttl_seconds)
        if ttl <= 0:
            raise ValueError("sessions.ttl_seconds must be positive")
        return cls(ttl_seconds=ttl)


@dataclass
class DispatchSettings:
    default_timeout_ms: int = 0  # 0 disables the default timeout

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "DispatchSettings":
        d = d or {}
        timeout = _as_int(d.get("default_timeout_ms"), cls.default_timeout_ms)
        if timeout < 0:
            raise ValueError("dispatch.default_timeout_ms must be >= 0")
        return cls(default_timeout_ms=timeout)

    @property
    def default_timeout_s(self) -> float | None:
        return self.default_timeout_ms / 1000.0 if self.default_timeout_ms > 0 else None


@dataclass
class PathsSettings:
    logs_dir: Path = Path("logs")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "PathsSettings":
        d = d or {}
        return cls(logs_dir=_as_path(d.get("logs_dir"), cls.logs_dir))


@dataclass
class Settings:
    server: ServerSettings = field(default_factory=ServerSettings)
    sessions: SessionSettings = field(default_factory=SessionSettings)
    dispatch: DispatchSettings = field(default_factory=DispatchSettings)
    paths: PathsSettings = field(default_factory=PathsSettings)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "Settings":
        d = d or {}
        return cls(
            server=ServerSettings.from_dict(d.get("server")),
            sessions=SessionSettings.from_dict(d.get("sessions")),
            dispatch=DispatchSettings.from_dict(d.get("dispatch")),
            paths=PathsSettings.from_dict(d.get("paths")),
        )
