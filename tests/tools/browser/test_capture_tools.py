import asyncio
import unittest

from agent_gateway.tool import ToolContext
from agent_gateway.tools.browser.pdf_tool import PdfTool
from agent_gateway.tools.browser.screenshot_tool import ScreenshotTool

from tests.fakes import FakeLauncher, FakePage, MemoryArtifactStore


def _run(tool, args: dict, session_id: str = "session-1234"):
    steps: list[str] = []
    result = asyncio.run(tool.execute(args, ToolContext(session_id, on_progress=steps.append)))
    return result, steps


class ScreenshotToolTests(unittest.TestCase):
    def setUp(self) -> None:
        self.artifacts = MemoryArtifactStore()
        self.launcher = FakeLauncher()
        self.tool = ScreenshotTool(self.artifacts, self.launcher, settle_ms=0)

    def test_success_uploads_png(self) -> None:
        result, steps = _run(self.tool, {"url": "https://example.com/path"})

        self.assertTrue(result["ok"])
        self.assertEqual("screenshot", result["kind"])
        self.assertEqual("image/png", result["contentType"])
        self.assertTrue(result["key"].startswith("files/session-1234/"))
        self.assertTrue(result["key"].endswith(".png"))
        self.assertEqual("/" + result["key"], result["url"])
        self.assertEqual(len(b"\x89PNG fake"), result["bytes"])
        self.assertEqual("https://example.com/path", result["sourceUrl"])
        self.assertEqual("Example Domain", result["title"])
        self.assertEqual((1280, 800), (result["width"], result["height"]))
        self.assertEqual({"width": 1280, "height": 800}, result["viewport"])
        self.assertIn(result["key"], self.artifacts.items)
        self.assertEqual(
            ["Launching browser…", "Navigating (networkidle0)…", "Settling…", "Capturing screenshot…", "Uploading…"],
            steps,
        )
        self.assertEqual({"type": "png", "full_page": True, "timeout": 20_000}, self.launcher.page.screenshot_kwargs)
        self.assertEqual(1, self.launcher.closed)

    def test_explicit_url_is_used_verbatim(self) -> None:
        _run(self.tool, {"url": "https://example.com/path"})
        self.assertEqual("https://example.com/path", self.launcher.page.gotos[0][0])

    def test_bare_domain_is_normalized(self) -> None:
        _run(self.tool, {"url": "example.com"})
        self.assertEqual("https://example.com", self.launcher.page.gotos[0][0])

    def test_options_are_applied(self) -> None:
        result, _ = _run(self.tool, {
            "url": "https://example.com",
            "fullPage": False,
            "viewport": {"width": 800, "height": 600},
            "waitUntil": "load",
            "timeoutMs": 5000,
        })
        self.assertTrue(result["ok"])
        self.assertEqual((800, 600), (result["width"], result["height"]))
        self.assertEqual({"viewport": {"width": 800, "height": 600}, "timeout_ms": 5000, "tag": "[screenshot]"}, self.launcher.opened[0])
        self.assertEqual(("https://example.com", "load", 5000), self.launcher.page.gotos[0])
        self.assertFalse(self.launcher.page.screenshot_kwargs["full_page"])

    def test_bad_url_never_launches(self) -> None:
        result, steps = _run(self.tool, {"url": "   "})
        self.assertEqual({"ok": False, "error": "Invalid URL", "code": "BAD_URL"}, result)
        self.assertEqual([], self.launcher.opened)
        self.assertEqual([], steps)

    def test_navigation_timeout_recovers_with_load(self) -> None:
        page = FakePage(lambda url, wait: RuntimeError("Timeout exceeded") if wait == "networkidle" else None)
        tool = ScreenshotTool(self.artifacts, FakeLauncher(page), settle_ms=0)
        result, _ = _run(tool, {"url": "https://example.com"})
        self.assertTrue(result["ok"])

    def test_navigation_exhaustion(self) -> None:
        page = FakePage(lambda url, wait: RuntimeError("Timeout exceeded"))
        launcher = FakeLauncher(page)
        tool = ScreenshotTool(self.artifacts, launcher, settle_ms=0)
        result, steps = _run(tool, {"url": "https://example.com"})

        self.assertEqual({"ok": False, "error": "Navigation timed out", "code": "NAV_TIMEOUT"}, result)
        self.assertIn("Retrying with www…", steps)
        self.assertEqual("Navigation failed (NAV_TIMEOUT)", steps[-1])
        self.assertEqual({}, self.artifacts.items)
        self.assertEqual(1, launcher.closed)

    def test_navigation_failure(self) -> None:
        page = FakePage(lambda url, wait: RuntimeError("net::ERR_CONNECTION_REFUSED"))
        tool = ScreenshotTool(self.artifacts, FakeLauncher(page), settle_ms=0)
        result, _ = _run(tool, {"url": "https://example.com"})
        self.assertEqual({"ok": False, "error": "Navigation failed", "code": "NAV_FAIL"}, result)

    def test_launch_failure(self) -> None:
        tool = ScreenshotTool(self.artifacts, FakeLauncher(launch_error=RuntimeError("no chromium")), settle_ms=0)
        result, _ = _run(tool, {"url": "https://example.com"})
        self.assertEqual({"ok": False, "error": "Browser launch failed", "code": "NAV_FAIL"}, result)

    def test_capture_failure(self) -> None:
        launcher = FakeLauncher(FakePage(capture_error=RuntimeError("page crashed")))
        tool = ScreenshotTool(self.artifacts, launcher, settle_ms=0)
        result, _ = _run(tool, {"url": "https://example.com"})
        self.assertEqual({"ok": False, "error": "Capture failed", "code": "CAPTURE_FAIL"}, result)
        self.assertEqual(1, launcher.closed)

    def test_upload_failure(self) -> None:
        tool = ScreenshotTool(MemoryArtifactStore(fail=True), self.launcher, settle_ms=0)
        result, steps = _run(tool, {"url": "https://example.com"})
        self.assertEqual({"ok": False, "error": "Upload failed", "code": "UPLOAD_FAIL"}, result)
        self.assertEqual("Uploading…", steps[-1])


class PdfToolTests(unittest.TestCase):
    def setUp(self) -> None:
        self.artifacts = MemoryArtifactStore()
        self.launcher = FakeLauncher()
        self.tool = PdfTool(self.artifacts, self.launcher, settle_ms=0)

    def test_success_uploads_pdf_with_defaults(self) -> None:
        result, steps = _run(self.tool, {"url": "example.com", "pdf": {"format": "A4", "scale": 1}})

        self.assertTrue(result["ok"])
        self.assertEqual("pdf", result["kind"])
        self.assertEqual("application/pdf", result["contentType"])
        self.assertTrue(result["key"].endswith(".pdf"))
        self.assertNotIn("width", result)
        self.assertIn("Rendering PDF…", steps)
        self.assertEqual(
            {"format": "A4", "landscape": False, "scale": 1.0, "print_background": True},
            self.launcher.page.pdf_kwargs,
        )

    def test_pdf_options_are_sanitized(self) -> None:
        _run(self.tool, {"url": "https://example.com", "pdf": {"format": "Poster", "landscape": True, "scale": 9}})
        self.assertEqual(
            {"format": "A4", "landscape": True, "scale": 2.0, "print_background": True},
            self.launcher.page.pdf_kwargs,
        )

    def test_letter_and_small_scale(self) -> None:
        _run(self.tool, {"url": "https://example.com", "pdf": {"format": "Letter", "scale": 0.01}})
        self.assertEqual("Letter", self.launcher.page.pdf_kwargs["format"])
        self.assertEqual(0.1, self.launcher.page.pdf_kwargs["scale"])
