from __future__ import annotations

from agent_gateway.memory.models import ROLES, Message
from agent_gateway.memory.store import MemoryStore


class MessageLog:
    """Append-only per-session message log backed by the ``messages`` table."""

    def __init__(self, store: MemoryStore):
        self._store = store

    def ensure_schema(self) -> None:
        self._store.ensure_schema()

    def append(self, session_id: str, message: Message) -> int:
        if message.role not in ROLES:
            raise ValueError(f"Unsupported message role: {message.role!r}")
        with self._store.transaction():
            cursor = self._store.execute(
                "INSERT INTO messages (session_id, role, content, ts) VALUES (?, ?, ?, ?)",
                (session_id, message.role, message.content, message.ts),
            )
        return int(cursor.lastrowid)

    def load(self, session_id: str) -> list[Message]:
        rows = self._store.execute(
            """
            SELECT role, content, ts
            FROM messages
            WHERE session_id = ?
            ORDER BY ts ASC, id ASC
            """,
            (session_id,),
        ).fetchall()
        return [Message(role=row["role"], content=row["content"], ts=int(row["ts"])) for row in rows]

    def clear(self, session_id: str) -> int:
        with self._store.transaction():
            cursor = self._store.execute("DELETE FROM messages WHERE session_id = ?", (session_id,))
        return cursor.rowcount
