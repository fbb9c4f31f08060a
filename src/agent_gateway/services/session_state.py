from __future__ import annotations

from dataclasses import dataclass, replace

from agent_gateway.memory import Message, now_ms

DAY_MS = 86_400_000


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of one session; every mutation returns a new snapshot."""

    model: str
    messages: tuple[Message, ...]
    created_at: int
    expires_at: int
    ttl_ms: int = DAY_MS

    @classmethod
    def fresh(cls, model: str, *, ttl_ms: int = DAY_MS) -> SessionState:
        now = now_ms()
        return cls(model=model, messages=(), created_at=now, expires_at=now + ttl_ms, ttl_ms=ttl_ms)

    def _touched(self) -> int:
        return now_ms() + self.ttl_ms

    def with_messages(self, messages: list[Message]) -> SessionState:
        return replace(self, messages=tuple(messages), expires_at=self._touched())

    def with_message(self, message: Message) -> SessionState:
        return replace(self, messages=self.messages + (message,), expires_at=self._touched())

    def with_model(self, model: str) -> SessionState:
        return replace(self, model=model, expires_at=self._touched())

    def cleared(self) -> SessionState:
        return SessionState.fresh(self.model, ttl_ms=self.ttl_ms)

    def history(self, limit: int) -> list[dict[str, str]]:
        recent = self.messages[-limit:] if limit > 0 else ()
        return [{"role": m.role, "content": m.content} for m in recent if m.role in ("user", "assistant")]

    def to_wire(self) -> dict:
        return {
            "model": self.model,
            "messages": [m.to_wire() for m in self.messages],
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
        }
