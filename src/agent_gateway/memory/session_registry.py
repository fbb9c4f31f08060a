from __future__ import annotations

import re
import time
from uuid import uuid4

from agent_gateway.memory.models import SessionRecord
from agent_gateway.memory.store import MemoryStore

_SESSION_ID_RE = re.compile(r"^[a-z0-9-]{8,}$")


def valid_session_id(value: str | None) -> str | None:
    if value and _SESSION_ID_RE.match(value):
        return value
    return None


def new_session_id() -> str:
    return str(uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


class SessionRegistry:
    """Rolling-TTL registry of issued session ids."""

    def __init__(self, store: MemoryStore):
        self._store = store

    def register(self, session_id: str, ttl_seconds: int) -> SessionRecord:
        now = now_ms()
        expires_at = now + ttl_seconds * 1000
        with self._store.transaction():
            self._store.execute(
                """
                INSERT INTO sessions (id, created_at, expires_at) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET expires_at = excluded.expires_at
                """,
                (session_id, now, expires_at),
            )
        return self.get(session_id) or SessionRecord(id=session_id, created_at=now, expires_at=expires_at)

    def get(self, session_id: str) -> SessionRecord | None:
        row = self._store.execute(
            "SELECT id, created_at, expires_at FROM sessions WHERE id = ? LIMIT 1",
            (session_id,),
        ).fetchone()
        if row is None:
            return None
        return SessionRecord(id=row["id"], created_at=int(row["created_at"]), expires_at=int(row["expires_at"]))

    def is_active(self, session_id: str) -> bool:
        record = self.get(session_id)
        return record is not None and record.expires_at > now_ms()
