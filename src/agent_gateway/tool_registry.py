from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from agent_gateway.tool import Tool
from agent_gateway.tools.weather.weather_tool import WeatherTool


@dataclass(frozen=True)
class ToolGroup:
    enabled: Callable[[dict], bool]
    build: Callable[[dict], list[Tool]]


def _always(_: dict) -> bool:
    return True


def _weather_tools(ctx: dict) -> list[Tool]:
    return [WeatherTool()]


def _browser_enabled(ctx: dict) -> bool:
    return ctx.get("artifacts") is not None


def _browser_tools(ctx: dict) -> list[Tool]:
    from agent_gateway.tools.browser.launcher import PlaywrightLauncher
    from agent_gateway.tools.browser.pdf_tool import PdfTool
    from agent_gateway.tools.browser.screenshot_tool import ScreenshotTool

    launcher = ctx.get("launcher") or PlaywrightLauncher(headless=ctx.get("headless", True))
    artifacts = ctx["artifacts"]
    settle_ms = ctx["settle_ms"]
    return [
        ScreenshotTool(artifacts, launcher, settle_ms=settle_ms),
        PdfTool(artifacts, launcher, settle_ms=settle_ms),
    ]


_GROUPS = [
    ToolGroup(enabled=_always, build=_weather_tools),
    ToolGroup(enabled=_browser_enabled, build=_browser_tools),
]


def get_all(
    artifacts=None,
    *,
    launcher=None,
    settle_ms: int = 1200,
    headless: bool = True,
) -> list[Tool]:
    ctx = {
        "artifacts": artifacts,
        "launcher": launcher,
        "settle_ms": settle_ms,
        "headless": headless,
    }

    tools: list[Tool] = []
    for group in _GROUPS:
        if group.enabled(ctx):
            tools.extend(group.build(ctx))
    return tools


def by_name(tools: list[Tool]) -> dict[str, Tool]:
    return {t.name: t for t in tools}
