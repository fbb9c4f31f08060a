from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Protocol, runtime_checkable

from loguru import logger
from playwright.async_api import Page, async_playwright

_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_HEADERS = {"Accept-Language": "en-US,en;q=0.9"}


@runtime_checkable
class BrowserLauncher(Protocol):
    def open_page(
        self,
        *,
        viewport: dict[str, int],
        timeout_ms: int,
        tag: str,
    ) -> AbstractAsyncContextManager[Any]: ...


class PlaywrightLauncher:
    """Launches a fresh headless Chromium per capture and closes it afterwards."""

    def __init__(self, *, headless: bool = True, user_agent: str = _USER_AGENT) -> None:
        self._headless = headless
        self._user_agent = user_agent

    @asynccontextmanager
    async def open_page(
        self,
        *,
        viewport: dict[str, int],
        timeout_ms: int,
        tag: str,
    ) -> AsyncIterator[Page]:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self._headless)
            logger.debug(f"{tag} browser launched headless={self._headless}")
            try:
                context = await browser.new_context(
                    viewport=viewport,
                    user_agent=self._user_agent,
                    extra_http_headers=_HEADERS,
                    bypass_csp=True,
                )
                page = await context.new_page()
                page.set_default_navigation_timeout(timeout_ms)
                page.on("console", lambda m: logger.debug(f"{tag} page.console {m.type} {m.text}"))
                page.on("pageerror", lambda e: logger.debug(f"{tag} pageerror {e}"))
                page.on("requestfailed", lambda r: logger.debug(f"{tag} requestfailed {r.url} {r.failure}"))
                yield page
            finally:
                logger.debug(f"{tag} closing browser")
                try:
                    await browser.close()
                except Exception as ex:
                    logger.debug(f"{tag} browser close failed: {ex}")
