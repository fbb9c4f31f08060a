from __future__ import annotations

import asyncio
import contextlib
import json
import re
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from agent_gateway.memory import Message, MessageLog, now_ms
from agent_gateway.protocol import (
    DONE,
    ERROR,
    STARTED,
    STEP,
    ChatSubmitted,
    ModelSelected,
    ResetRequested,
    cleared_event,
    decode_inbound,
    delta_event,
    done_event,
    ready_event,
    tool_event,
)
from agent_gateway.services.forecast_summary import summarize_forecast
from agent_gateway.services.outcome_summary import OutcomeSummarizer
from agent_gateway.services.planner import Planner
from agent_gateway.services.session_state import DAY_MS, SessionState
from agent_gateway.services.stream_relay import StreamRelay
from agent_gateway.tool import Tool, ToolContext
from agent_gateway.tools.browser.pdf_tool import PDF_TOOL_NAME
from agent_gateway.tools.browser.screenshot_tool import SCREENSHOT_TOOL_NAME
from agent_gateway.tools.results import tool_result_envelope
from agent_gateway.tools.weather.weather_tool import WEATHER_TOOL_NAME

Emit = Callable[[dict], Awaitable[None]]

SCREENSHOT_INTENT = re.compile(r"\b(screenshot|capture\b.*(page|site|screen)|image of)\b", re.IGNORECASE)
PDF_INTENT = re.compile(r"\b(pdf|export to pdf|save as pdf|render .* pdf)\b", re.IGNORECASE)
URL_TOKEN = re.compile(r"\bhttps?://\S+|(?:\b[\w-]+\.)+\w{2,}(?:/\S*)?", re.IGNORECASE)

FALLBACK_CAPTURE_URL = "https://example.com"


def extract_target(text: str) -> str:
    """First URL-looking token in ``text``, or an empty string."""
    match = URL_TOKEN.search(text)
    return match.group(0) if match else ""


class _ProgressForwarder:
    """Bridges a tool's synchronous progress sink to async ``step`` events.

    Messages are queued in call order and sent by a background task; leaving
    the context waits until every queued step has been sent.
    """

    def __init__(self, tool_name: str, emit: Emit):
        self._tool_name = tool_name
        self._emit = emit
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    def __call__(self, message: str) -> None:
        self._queue.put_nowait(message)

    async def __aenter__(self) -> _ProgressForwarder:
        self._task = asyncio.create_task(self._pump())
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self._queue.join()
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def _pump(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self._emit(tool_event(self._tool_name, STEP, message))
            except Exception as ex:
                logger.debug(f"Progress event dropped: {ex}")
            finally:
                self._queue.task_done()


class SessionController:
    """Per-session state holder and chat dispatch cascade.

    Every assistant or tool output is appended to the message log first, then
    mirrored into the in-memory snapshot, then echoed to the client.
    """

    def __init__(
        self,
        session_id: str,
        *,
        message_log: MessageLog,
        planner: Planner,
        relay: StreamRelay,
        summarizer: OutcomeSummarizer,
        tools: dict[str, Tool],
        default_model: str,
        history_limit: int = 40,
        ttl_ms: int = DAY_MS,
    ):
        self._session_id = session_id
        self._log = message_log
        self._planner = planner
        self._relay = relay
        self._summarizer = summarizer
        self._tools = tools
        self._history_limit = history_limit
        self._state = SessionState.fresh(default_model, ttl_ms=ttl_ms)

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> SessionState:
        return self._state

    async def on_connect(self, emit: Emit) -> None:
        self._log.ensure_schema()
        if not self._state.messages:
            messages = self._log.load(self._session_id)
            self._state = self._state.with_messages(messages)
            logger.info(f"Session {self._session_id} hydrated messages={len(messages)}")
        await emit(ready_event(self._state.to_wire()))

    async def on_message(self, raw: str | bytes, emit: Emit) -> None:
        event = decode_inbound(raw)
        if isinstance(event, ModelSelected):
            self._state = self._state.with_model(event.model)
            logger.info(f"Session {self._session_id} model set: {event.model}")
        elif isinstance(event, ResetRequested):
            await self._reset(emit)
        elif isinstance(event, ChatSubmitted):
            await self._chat(event.text, emit)

    async def _reset(self, emit: Emit) -> None:
        removed = self._log.clear(self._session_id)
        self._state = self._state.cleared()
        logger.info(f"Session {self._session_id} reset, removed={removed}")
        await emit(cleared_event())

    # Chat cascade

    async def _chat(self, text: str, emit: Emit) -> None:
        user_text = text.strip()
        if not user_text:
            return

        self._persist("user", user_text)
        history = self._state.history(self._history_limit)
        model = self._state.model

        planned = await self._planner.plan(model, history, user_text)
        if planned is not None and planned.tool == WEATHER_TOOL_NAME:
            await self._run_weather(planned.args, emit)
            return

        if SCREENSHOT_INTENT.search(user_text):
            target = extract_target(user_text)
            await self._say(f"Okay, I'll capture a full-page screenshot of {target or 'that page'}…", emit)
            await self._run_capture(
                SCREENSHOT_TOOL_NAME,
                {"url": target or FALLBACK_CAPTURE_URL, "fullPage": True},
                started="Planning capture…",
                ready="Screenshot ready",
                user_text=user_text,
                emit=emit,
            )
            return

        if PDF_INTENT.search(user_text):
            target = extract_target(user_text)
            await self._say(f"Got it, I'll render a PDF of {target or 'that page'}…", emit)
            await self._run_capture(
                PDF_TOOL_NAME,
                {"url": target or FALLBACK_CAPTURE_URL, "pdf": {"format": "A4", "scale": 1}},
                started="Planning PDF…",
                ready="PDF ready",
                user_text=user_text,
                emit=emit,
            )
            return

        reply = await self._relay.stream(model, history, emit)
        self._persist("assistant", reply)

    async def _run_weather(self, args: dict[str, Any], emit: Emit) -> None:
        location = args.get("location")
        await self._say(f"Sure, I'll check the forecast for {location or 'that location'} using getWeather…", emit)

        await emit(tool_event(WEATHER_TOOL_NAME, STARTED, "Planning weather lookup…"))
        await emit(tool_event(WEATHER_TOOL_NAME, STEP, "Fetching forecast from Open-Meteo…"))
        result = await self._tools[WEATHER_TOOL_NAME].execute(args, ToolContext(self._session_id))

        if not result.get("ok"):
            error = str(result.get("error") or "Unknown error")
            await emit(tool_event(WEATHER_TOOL_NAME, ERROR, error))
            await self._say(f"I couldn't fetch the weather: {error}", emit)
            return

        await emit(tool_event(WEATHER_TOOL_NAME, DONE, "Forecast ready", result))
        self._persist_tool(WEATHER_TOOL_NAME, result)
        await self._say(summarize_forecast(result), emit)

    async def _run_capture(
        self,
        tool_name: str,
        args: dict[str, Any],
        *,
        started: str,
        ready: str,
        user_text: str,
        emit: Emit,
    ) -> None:
        tool = self._tools.get(tool_name)
        await emit(tool_event(tool_name, STARTED, started))
        if tool is None:
            result = {"ok": False, "error": f"{tool_name} is not available"}
        else:
            async with _ProgressForwarder(tool_name, emit) as forward:
                result = await tool.execute(args, ToolContext(self._session_id, on_progress=forward))

        if result.get("ok"):
            await emit(tool_event(tool_name, DONE, ready, result))
            self._persist_tool(tool_name, result)
        else:
            await emit(tool_event(tool_name, ERROR, str(result.get("error", "")), result))

        summary = await self._summarizer.summarize(self._state.model, user_text, tool_name, result)
        await self._say(summary, emit)

    # Persistence

    async def _say(self, text: str, emit: Emit) -> None:
        self._persist("assistant", text)
        await emit(delta_event(text))
        await emit(done_event())

    def _persist_tool(self, tool_name: str, result: dict[str, Any]) -> None:
        self._persist("tool", json.dumps(tool_result_envelope(tool_name, result), ensure_ascii=False))

    def _persist(self, role: str, content: str) -> Message | None:
        message = Message(role=role, content=content, ts=now_ms())
        try:
            self._log.append(self._session_id, message)
        except Exception as ex:
            logger.error(f"Session {self._session_id} failed to persist {role} message: {ex}")
            return None
        self._state = self._state.with_message(message)
        return message
