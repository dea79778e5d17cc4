from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


DEFAULT_SESSION_TTL_S = 24 * 60 * 60


@dataclass(frozen=True)
class Session:
    session_id: str
    created_at: float  # unix timestamp
    expires_at: float

    def is_expired(self, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        return self.expires_at < now

    def to_dict(self) -> dict[str, str]:
        expires = datetime.fromtimestamp(self.expires_at, tz=timezone.utc)
        return {"id": self.session_id, "expires": expires.isoformat().replace("+00:00", "Z")}


def new_session_id(now: float | None = None) -> str:
    """Timestamp + random suffix. Unique in practice, not unguessable."""
    now = time.time() if now is None else now
    return f"session-{int(now * 1000)}-{uuid.uuid4().hex[:12]}"


@dataclass
class SessionStore:
    """Handshake sessions keyed by id.

    Sessions are never renewed or invalidated individually; `sweep_expired`
    is the only removal path and must be scheduled by the caller.
    """

    ttl_s: float = DEFAULT_SESSION_TTL_S
    _sessions: dict[str, Session] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def create(self) -> Session:
        now = time.time()
        with self._lock:
            sid = new_session_id(now)
            while sid in self._sessions:
                sid = new_session_id(now)
            s = Session(session_id=sid, created_at=now, expires_at=now + self.ttl_s)
            self._sessions[sid] = s
        return s

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    def sweep_expired(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
