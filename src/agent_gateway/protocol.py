"""Wire protocol for the agent WebSocket.

Inbound frames decode into one of three event types; anything else decodes to
``None`` and is ignored by the controller. Outbound events are plain dicts
built by the helpers below and sent as JSON text frames.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class ModelSelected:
    model: str


@dataclass(frozen=True)
class ResetRequested:
    pass


@dataclass(frozen=True)
class ChatSubmitted:
    text: str


InboundEvent = Union[ModelSelected, ResetRequested, ChatSubmitted]


def decode_inbound(raw: str | bytes) -> InboundEvent | None:
    if not isinstance(raw, str):
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    kind = data.get("type")
    if kind == "model":
        model = data.get("model")
        if isinstance(model, str) and model:
            return ModelSelected(model=model)
        return None
    if kind == "reset":
        return ResetRequested()
    if kind == "chat":
        text = data.get("text")
        return ChatSubmitted(text=text if isinstance(text, str) else "")
    return None


# Outbound

STARTED = "started"
STEP = "step"
DONE = "done"
ERROR = "error"


def ready_event(state: dict[str, Any]) -> dict[str, Any]:
    return {"type": "ready", "state": state}


def delta_event(text: str) -> dict[str, Any]:
    return {"type": "delta", "text": text}


def done_event() -> dict[str, Any]:
    return {"type": "done"}


def cleared_event() -> dict[str, Any]:
    return {"type": "cleared"}


def tool_event(
    tool: str,
    status: str,
    message: str | None = None,
    result: dict[str, Any] | None = None,
) -> dict[str, Any]:
    event: dict[str, Any] = {"type": "tool", "tool": tool, "status": status}
    if message is not None:
        event["message"] = message
    if result is not None:
        event["result"] = result
    return event
