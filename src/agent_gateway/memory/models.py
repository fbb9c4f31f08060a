from __future__ import annotations

from dataclasses import dataclass

ROLES = ("user", "assistant", "tool")


@dataclass(frozen=True)
class Message:
    role: str
    content: str
    ts: int

    def to_wire(self) -> dict:
        return {"role": self.role, "content": self.content, "ts": self.ts}


@dataclass(frozen=True)
class SessionRecord:
    id: str
    created_at: int
    expires_at: int
