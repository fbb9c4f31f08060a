from typing import Any

from agent_gateway.tools.browser.capture_tool import CaptureTool

SCREENSHOT_TOOL_NAME = "screenshot"


class ScreenshotTool(CaptureTool):
    kind = "screenshot"
    extension = "png"
    content_type = "image/png"
    capture_phase = "Capturing screenshot…"
    tag = "[screenshot]"

    @property
    def name(self) -> str:
        return SCREENSHOT_TOOL_NAME

    @property
    def description(self) -> str:
        return "Capture a PNG screenshot of a web page and store it for download."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "URL or bare domain to capture"},
                "fullPage": {"type": "boolean", "description": "Capture the full scrollable page (default true)"},
                "viewport": {
                    "type": "object",
                    "properties": {"width": {"type": "integer"}, "height": {"type": "integer"}},
                    "description": "Viewport size, default 1280x800",
                },
                "waitUntil": {
                    "type": "string",
                    "enum": ["load", "domcontentloaded", "networkidle0", "networkidle2"],
                    "description": "Initial wait condition (default networkidle0)",
                },
                "timeoutMs": {"type": "integer", "description": "Per-attempt navigation timeout, 1000-60000 (default 20000)"},
            },
            "required": ["url"],
            "additionalProperties": False,
        }

    def parse_options(self, tool_input: dict[str, Any]) -> dict[str, Any]:
        full_page = tool_input.get("fullPage")
        return {"fullPage": full_page if isinstance(full_page, bool) else True}

    async def capture(self, page: Any, options: dict[str, Any], timeout_ms: int) -> bytes:
        return await page.screenshot(type="png", full_page=options["fullPage"], timeout=timeout_ms)

    def result_metadata(self, options: dict[str, Any], viewport: dict[str, int]) -> dict[str, Any]:
        return {
            "width": viewport["width"],
            "height": viewport["height"],
            "viewport": dict(viewport),
        }
