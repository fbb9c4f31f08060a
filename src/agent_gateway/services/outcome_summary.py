"""Natural-language summaries of screenshot and PDF outcomes.

:class:`OutcomeSummarizer` composes a model-backed primary with a pure
fallback; any primary failure (no model, exception, empty text) selects the
fallback.
"""

from __future__ import annotations

import json
from typing import Any, Protocol
from urllib.parse import urlsplit

from loguru import logger

from agent_gateway.provider import LLMProvider
from agent_gateway.providers.common import result_text
from agent_gateway.tools.browser.screenshot_tool import SCREENSHOT_TOOL_NAME

OUTCOME_INSTRUCTION = (
    "Explain the outcome of a web capture tool (screenshot or PDF) in 1–3 sentences. "
    "Be factual and concise. If navigation timed out or required a fallback "
    "(e.g., used 'load' instead of 'networkidle0'), or redirected, mention it briefly. "
    "Offer one concrete suggestion if helpful (e.g., adjust viewport, increase timeout). "
    "The link is already shown; don't repeat it."
)

_RESULT_JSON_LIMIT = 1800


class SummaryStrategy(Protocol):
    async def summarize(self, model: str | None, user_text: str, tool: str, result: dict[str, Any]) -> str | None: ...


def _title_or_host(result: dict[str, Any]) -> str:
    title = result.get("title")
    if title:
        return str(title)
    source = result.get("sourceUrl")
    if source:
        host = urlsplit(str(source)).hostname
        if host:
            return host
    return "page"


def fallback_outcome_summary(tool: str, result: dict[str, Any]) -> str:
    is_screenshot = tool == SCREENSHOT_TOOL_NAME
    if result.get("ok"):
        title = _title_or_host(result)
        if is_screenshot:
            width, height = result.get("width"), result.get("height")
            dims = f" ({width}×{height})" if width and height else ""
            return f"Captured “{title}”{dims}. Use the link above to open or download."
        return f"Rendered “{title}” to PDF. Use the link above to open or download."

    code = f" ({result['code']})" if result.get("code") else ""
    label = "screenshot" if is_screenshot else "PDF"
    return f"The {label} step failed{code}. You can retry with a longer timeout or a different URL."


class ModelOutcomeSummarizer:
    def __init__(self, provider: LLMProvider, *, max_tokens: int = 150, temperature: float = 0.2):
        self._provider = provider
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def summarize(self, model: str | None, user_text: str, tool: str, result: dict[str, Any]) -> str | None:
        if not model:
            return None
        result_json = json.dumps(result, ensure_ascii=False)[:_RESULT_JSON_LIMIT]
        messages = [
            {"role": "system", "content": OUTCOME_INSTRUCTION},
            {
                "role": "user",
                "content": f"User request:\n{user_text}\n\nTool: {tool}\n\nResult JSON (truncated):\n{result_json}",
            },
        ]
        out = await self._provider.run(model, {
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        })
        text = result_text(out)
        return text.strip() if text and text.strip() else None


class OutcomeSummarizer:
    def __init__(self, primary: SummaryStrategy | None):
        self._primary = primary

    async def summarize(self, model: str | None, user_text: str, tool: str, result: dict[str, Any]) -> str:
        if self._primary is not None:
            try:
                text = await self._primary.summarize(model, user_text, tool, result)
            except Exception as ex:
                logger.warning(f"Outcome summary failed, using fallback: {ex}")
                text = None
            if text:
                return text
        return fallback_outcome_summary(tool, result)
