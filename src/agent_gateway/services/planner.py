from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from agent_gateway.provider import LLMProvider
from agent_gateway.tool import Tool, to_function_schema
from agent_gateway.tools.weather.weather_tool import WEATHER_TOOL_NAME


@dataclass(frozen=True)
class PlannedToolCall:
    tool: str
    args: dict[str, Any] = field(default_factory=dict)


def parse_tool_args(raw: object) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        if isinstance(parsed, dict):
            return parsed
    return {}


def _call_name(call: dict) -> str | None:
    function = call.get("function")
    if isinstance(function, dict) and isinstance(function.get("name"), str):
        return function["name"]
    name = call.get("name")
    return name if isinstance(name, str) else None


def _call_arguments(call: dict) -> object:
    function = call.get("function")
    if isinstance(function, dict) and "arguments" in function:
        return function["arguments"]
    return call.get("arguments")


class Planner:
    """Single-shot model call that decides whether a turn needs the forecast tool."""

    def __init__(
        self,
        provider: LLMProvider,
        weather_tool: Tool,
        system_prompt: str,
        *,
        max_tokens: int = 200,
        temperature: float = 0.2,
    ):
        self._provider = provider
        self._schema = to_function_schema(weather_tool)
        self._system_prompt = system_prompt
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def plan(self, model: str, history: list[dict], user_text: str) -> PlannedToolCall | None:
        messages = [
            {"role": "system", "content": self._system_prompt},
            *history,
            {"role": "user", "content": user_text},
        ]
        try:
            out = await self._provider.run(model, {
                "messages": messages,
                "tools": [self._schema],
                "temperature": self._temperature,
                "max_tokens": self._max_tokens,
            })
        except Exception as ex:
            logger.warning(f"Planner error: {ex}")
            return None

        if not isinstance(out, dict):
            return None
        calls = out.get("tool_calls")
        if not isinstance(calls, list) or not calls or not isinstance(calls[0], dict):
            return None

        call = calls[0]
        if _call_name(call) != WEATHER_TOOL_NAME:
            logger.debug(f"Planner ignored tool call: {_call_name(call)!r}")
            return None
        args = parse_tool_args(_call_arguments(call))
        logger.info(f"Planner selected {WEATHER_TOOL_NAME} args={args}")
        return PlannedToolCall(tool=WEATHER_TOOL_NAME, args=args)
