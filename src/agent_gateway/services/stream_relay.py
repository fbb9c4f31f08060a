"""Relay a model token stream to the client as ``delta`` events.

The backend stream is server-sent events: frames separated by a blank line,
each carrying one or more ``data:`` lines. Bytes are decoded incrementally so
multibyte characters split across chunks survive.
"""

from __future__ import annotations

import codecs
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from loguru import logger

from agent_gateway.protocol import delta_event, done_event
from agent_gateway.provider import LLMProvider

Emit = Callable[[dict], Awaitable[None]]

STREAM_DONE = "[DONE]"
NO_RESPONSE = "[no response]"
STREAM_ERROR = "_(stream error)_"


class SSEDecoder:
    """Incremental decoder turning raw byte chunks into ``data:`` payloads."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        self._buffer += self._decoder.decode(chunk).replace("\r\n", "\n")
        payloads: list[str] = []
        while "\n\n" in self._buffer:
            frame, self._buffer = self._buffer.split("\n\n", 1)
            payloads.extend(_frame_payloads(frame))
        return payloads


def _frame_payloads(frame: str) -> list[str]:
    payloads = []
    for line in frame.split("\n"):
        if not line.startswith("data:"):
            continue
        payload = line[5:].lstrip()
        if payload:
            payloads.append(payload)
    return payloads


def extract_delta(payload: str) -> str:
    try:
        data = json.loads(payload)
    except ValueError:
        return payload
    if not isinstance(data, dict):
        return ""

    if isinstance(data.get("response"), str):
        return data["response"]

    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        delta = choices[0].get("delta")
        if isinstance(delta, dict) and isinstance(delta.get("content"), str):
            return delta["content"]

    delta = data.get("delta")
    if isinstance(delta, dict) and isinstance(delta.get("content"), str):
        return delta["content"]

    for key in ("output_text", "text"):
        if isinstance(data.get(key), str):
            return data[key]
    return ""


def _is_byte_stream(value: Any) -> bool:
    return hasattr(value, "__aiter__")


class StreamRelay:
    def __init__(self, provider: LLMProvider, system_prompt: str):
        self._provider = provider
        self._system_prompt = system_prompt

    async def stream(self, model: str, history: list[dict], emit: Emit) -> str:
        """Stream a reply, emitting deltas then exactly one ``done``. Returns the full text."""
        messages = [{"role": "system", "content": self._system_prompt}, *history]
        parts: list[str] = []
        full: str | None = None
        try:
            async with self._provider.stream_chat(model, messages) as out:
                if _is_byte_stream(out):
                    await self._consume(out, parts, emit)
                else:
                    full = out if isinstance(out, str) else NO_RESPONSE
        except Exception as ex:
            logger.warning(f"Stream error: {ex}")
            full = "".join(parts) or STREAM_ERROR
        finally:
            try:
                await emit(done_event())
            except Exception as ex:
                logger.warning(f"Failed to send done event: {ex}")
        return full if full is not None else "".join(parts)

    async def _consume(self, chunks: AsyncIterator[bytes], parts: list[str], emit: Emit) -> None:
        decoder = SSEDecoder()
        async for chunk in chunks:
            for payload in decoder.feed(chunk):
                if payload == STREAM_DONE:
                    return
                piece = extract_delta(payload)
                if piece:
                    parts.append(piece)
                    await emit(delta_event(piece))
