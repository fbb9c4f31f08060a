from __future__ import annotations

import asyncio
import time
from typing import Any

from loguru import logger

from agent_gateway.artifact_store import ArtifactStore, artifact_key
from agent_gateway.tool import ToolContext
from agent_gateway.tools.browser.launcher import BrowserLauncher
from agent_gateway.tools.browser.navigation import (
    Navigator,
    clamp_timeout,
    normalize_url,
    resolve_wait,
)
from agent_gateway.tools.results import BAD_URL, CAPTURE_FAIL, NAV_FAIL, NAV_TIMEOUT, UPLOAD_FAIL, tool_error

DEFAULT_VIEWPORT = {"width": 1280, "height": 800}
DEFAULT_SETTLE_MS = 1200


def parse_viewport(value: object) -> dict[str, int]:
    if isinstance(value, dict):
        try:
            width = int(value.get("width", 0))
            height = int(value.get("height", 0))
        except (TypeError, ValueError):
            return dict(DEFAULT_VIEWPORT)
        if width > 0 and height > 0:
            return {"width": width, "height": height}
    return dict(DEFAULT_VIEWPORT)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class CaptureTool:
    """Shared navigate, settle, capture and upload pipeline.

    Subclasses provide the artifact format (``kind``, ``extension``,
    ``content_type``), option parsing, the capture call itself and any extra
    result metadata.
    """

    kind = ""
    extension = ""
    content_type = ""
    capture_phase = ""
    tag = "[capture]"

    def __init__(
        self,
        artifacts: ArtifactStore,
        launcher: BrowserLauncher,
        *,
        settle_ms: int = DEFAULT_SETTLE_MS,
    ) -> None:
        self._artifacts = artifacts
        self._launcher = launcher
        self._settle_ms = max(0, settle_ms)

    def parse_options(self, tool_input: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def capture(self, page: Any, options: dict[str, Any], timeout_ms: int) -> bytes:
        raise NotImplementedError

    def result_metadata(self, options: dict[str, Any], viewport: dict[str, int]) -> dict[str, Any]:
        return {}

    async def execute(self, tool_input: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        url = normalize_url(tool_input.get("url"))
        if url is None:
            logger.info(f"{self.tag} rejected url={tool_input.get('url')!r}")
            return tool_error("Invalid URL", BAD_URL)

        timeout_ms = clamp_timeout(tool_input.get("timeoutMs"))
        viewport = parse_viewport(tool_input.get("viewport"))
        wait = resolve_wait(tool_input.get("waitUntil"))
        options = self.parse_options(tool_input)
        logger.info(
            f"{self.tag} start sid={context.session_id} url={url} viewport={viewport} "
            f"waitUntil={wait} timeoutMs={timeout_ms} options={options}"
        )

        context.on_progress("Launching browser…")
        started = time.monotonic()
        page_opened = False
        try:
            async with self._launcher.open_page(viewport=viewport, timeout_ms=timeout_ms, tag=self.tag) as page:
                page_opened = True
                return await self._run(
                    page,
                    url=url,
                    wait=wait,
                    timeout_ms=timeout_ms,
                    viewport=viewport,
                    options=options,
                    context=context,
                    started=started,
                )
        except Exception as ex:
            logger.warning(f"{self.tag} error: {ex}")
            if not page_opened:
                return tool_error("Browser launch failed", NAV_FAIL)
            if "nav" in str(ex).lower():
                return tool_error("Navigation failed", NAV_FAIL)
            return tool_error("Capture failed", CAPTURE_FAIL)

    async def _run(
        self,
        page: Any,
        *,
        url: str,
        wait: str,
        timeout_ms: int,
        viewport: dict[str, int],
        options: dict[str, Any],
        context: ToolContext,
        started: float,
    ) -> dict[str, Any]:
        emit = context.on_progress

        emit(f"Navigating ({wait})…")
        navigation = await Navigator(page, timeout_ms=timeout_ms, tag=self.tag, on_progress=emit).navigate(url, wait)
        if not navigation.ok:
            emit(f"Navigation failed ({navigation.code})")
            if navigation.code == NAV_TIMEOUT:
                return tool_error("Navigation timed out", NAV_TIMEOUT)
            return tool_error("Navigation failed", NAV_FAIL)

        emit("Settling…")
        settle_started = time.monotonic()
        await asyncio.sleep(self._settle_ms / 1000)
        settle_ms = _elapsed_ms(settle_started)

        final_url = str(page.url or navigation.url)
        redirected = final_url.rstrip("/") != url.rstrip("/")
        title: str | None = None
        try:
            title = await page.title() or None
        except Exception as ex:
            logger.debug(f"{self.tag} title unavailable: {ex}")
        logger.debug(f"{self.tag} settled ms={settle_ms} finalUrl={final_url} redirected={redirected} title={title!r}")

        emit(self.capture_phase)
        capture_started = time.monotonic()
        try:
            data = await self.capture(page, options, timeout_ms)
        except Exception as ex:
            logger.warning(f"{self.tag} capture failed: {ex}")
            return tool_error("Capture failed", CAPTURE_FAIL)
        capture_ms = _elapsed_ms(capture_started)
        logger.debug(f"{self.tag} capture ok bytes={len(data)} ms={capture_ms}")

        key = artifact_key(context.session_id, self.extension)
        emit("Uploading…")
        upload_started = time.monotonic()
        try:
            await self._artifacts.put(key, data, self.content_type)
        except Exception as ex:
            logger.warning(f"{self.tag} upload failed key={key}: {ex}")
            return tool_error("Upload failed", UPLOAD_FAIL)
        upload_ms = _elapsed_ms(upload_started)

        logger.info(
            f"{self.tag} done totalMs={_elapsed_ms(started)} navMs={navigation.elapsed_ms} "
            f"settleMs={settle_ms} captureMs={capture_ms} uploadMs={upload_ms} "
            f"attempts={[a.to_log() for a in navigation.attempts]} finalUrl={final_url}"
        )

        result: dict[str, Any] = {
            "ok": True,
            "kind": self.kind,
            "url": f"/{key}",
            "key": key,
            "contentType": self.content_type,
            "bytes": len(data),
            "sourceUrl": final_url,
            "title": title,
        }
        result.update(self.result_metadata(options, viewport))
        return result
