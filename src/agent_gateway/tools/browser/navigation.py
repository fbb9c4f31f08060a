"""Navigation ladder for the browser-backed tools.

A capture first navigates with the requested wait condition. A timeout falls
back to ``load``, and any remaining failure falls back to ``domcontentloaded``.
When the bare host still cannot be reached, the same ladder runs once more
against the ``www.`` host. Every attempt is recorded as a
:class:`NavigationAttempt` for logging.
"""

from __future__ import annotations

import ipaddress
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from loguru import logger
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from agent_gateway.tool import ProgressSink, ignore_progress
from agent_gateway.tools.results import NAV_FAIL, NAV_TIMEOUT

DEFAULT_WAIT = "networkidle0"
FALLBACK_LOAD = "load"
FALLBACK_DOM = "domcontentloaded"

# Puppeteer-style names map onto Playwright's wait_until values.
_PLAYWRIGHT_WAIT = {
    "networkidle0": "networkidle",
    "networkidle2": "networkidle",
    "networkidle": "networkidle",
    "load": "load",
    "domcontentloaded": "domcontentloaded",
}

MIN_TIMEOUT_MS = 1_000
MAX_TIMEOUT_MS = 60_000
DEFAULT_TIMEOUT_MS = 20_000

OK = "ok"
TIMEOUT = "timeout"
FAIL = "fail"


def normalize_url(value: object) -> str | None:
    raw = str(value or "").strip()
    if not raw:
        return None
    parts = urlsplit(raw)
    if parts.scheme.lower() in ("http", "https") and _has_valid_host(parts):
        return raw
    candidate = f"https://{raw}"
    if _has_valid_host(urlsplit(candidate)):
        return candidate
    return None


def _has_valid_host(parts: Any) -> bool:
    try:
        hostname = parts.hostname
        _ = parts.port
    except ValueError:
        return False
    if not hostname or any(ch.isspace() for ch in parts.netloc):
        return False
    return True


def with_www(url: str) -> str | None:
    parts = urlsplit(url)
    hostname = parts.hostname or ""
    if not hostname or hostname.startswith("www."):
        return None
    try:
        ipaddress.ip_address(hostname)
        return None
    except ValueError:
        pass
    userinfo, sep, hostport = parts.netloc.rpartition("@")
    return urlunsplit(parts._replace(netloc=f"{userinfo}{sep}www.{hostport}"))


def clamp_timeout(value: object) -> int:
    if isinstance(value, bool) or value is None:
        return DEFAULT_TIMEOUT_MS
    try:
        timeout = int(float(value))
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT_MS
    return max(MIN_TIMEOUT_MS, min(MAX_TIMEOUT_MS, timeout))


def resolve_wait(value: object) -> str:
    if isinstance(value, str) and value in _PLAYWRIGHT_WAIT:
        return value
    return DEFAULT_WAIT


def is_timeout_error(ex: BaseException) -> bool:
    return isinstance(ex, PlaywrightTimeoutError) or "timeout" in str(ex).lower()


@dataclass(frozen=True)
class NavigationAttempt:
    url: str
    wait_condition: str
    elapsed_ms: int
    outcome: str

    def to_log(self) -> dict:
        return {
            "url": self.url,
            "waitCondition": self.wait_condition,
            "elapsedMs": self.elapsed_ms,
            "outcome": self.outcome,
        }


@dataclass
class NavigationResult:
    ok: bool
    url: str
    attempts: list[NavigationAttempt] = field(default_factory=list)
    code: str | None = None

    @property
    def elapsed_ms(self) -> int:
        return sum(a.elapsed_ms for a in self.attempts)


class Navigator:
    def __init__(
        self,
        page: Any,
        *,
        timeout_ms: int,
        tag: str = "[nav]",
        on_progress: ProgressSink = ignore_progress,
    ) -> None:
        self._page = page
        self._timeout_ms = timeout_ms
        self._tag = tag
        self._on_progress = on_progress
        self._attempts: list[NavigationAttempt] = []

    async def navigate(self, url: str, wait: str = DEFAULT_WAIT) -> NavigationResult:
        outcome = await self._ladder(url, wait)
        if outcome != OK:
            www_url = with_www(url)
            if www_url is not None:
                self._on_progress("Retrying with www…")
                url = www_url
                outcome = await self._ladder(url, wait)

        if outcome == OK:
            return NavigationResult(ok=True, url=url, attempts=list(self._attempts))

        code = NAV_TIMEOUT if outcome == TIMEOUT else NAV_FAIL
        logger.info(f"{self._tag} navigation failed code={code} attempts={[a.to_log() for a in self._attempts]}")
        return NavigationResult(ok=False, url=url, attempts=list(self._attempts), code=code)

    async def _ladder(self, url: str, wait: str) -> str:
        outcome = await self._attempt(url, wait)
        if outcome == TIMEOUT:
            outcome = await self._attempt(url, FALLBACK_LOAD)
        if outcome != OK:
            outcome = await self._attempt(url, FALLBACK_DOM)
        return outcome

    async def _attempt(self, url: str, wait: str) -> str:
        started = time.monotonic()
        logger.debug(f"{self._tag} navigating to={url} waitUntil={wait} timeout={self._timeout_ms}")
        try:
            await self._page.goto(url, wait_until=_PLAYWRIGHT_WAIT.get(wait, wait), timeout=self._timeout_ms)
            outcome = OK
            detail = f"finalUrl={self._page.url}"
        except Exception as ex:
            outcome = TIMEOUT if is_timeout_error(ex) else FAIL
            detail = f"error={ex}"
        elapsed_ms = int((time.monotonic() - started) * 1000)
        self._attempts.append(NavigationAttempt(url=url, wait_condition=wait, elapsed_ms=elapsed_ms, outcome=outcome))
        logger.debug(f"{self._tag} navigate {outcome} waitUntil={wait} ms={elapsed_ms} {detail}")
        return outcome
