from typing import Any

from agent_gateway.tools.browser.capture_tool import CaptureTool

PDF_TOOL_NAME = "convertToPdf"

PAGE_FORMATS = ("A4", "Letter", "Legal", "Tabloid", "A3", "A5")


def _scale(value: object) -> float:
    if isinstance(value, bool) or value is None:
        return 1.0
    try:
        scale = float(value)
    except (TypeError, ValueError):
        return 1.0
    # Chromium rejects scales outside this range.
    return min(2.0, max(0.1, scale))


class PdfTool(CaptureTool):
    kind = "pdf"
    extension = "pdf"
    content_type = "application/pdf"
    capture_phase = "Rendering PDF…"
    tag = "[pdf]"

    @property
    def name(self) -> str:
        return PDF_TOOL_NAME

    @property
    def description(self) -> str:
        return "Render a web page to a PDF document and store it for download."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "URL or bare domain to render"},
                "viewport": {
                    "type": "object",
                    "properties": {"width": {"type": "integer"}, "height": {"type": "integer"}},
                },
                "waitUntil": {
                    "type": "string",
                    "enum": ["load", "domcontentloaded", "networkidle0", "networkidle2"],
                },
                "timeoutMs": {"type": "integer", "description": "Per-attempt navigation timeout, 1000-60000 (default 20000)"},
                "pdf": {
                    "type": "object",
                    "properties": {
                        "format": {"type": "string", "enum": list(PAGE_FORMATS)},
                        "landscape": {"type": "boolean"},
                        "scale": {"type": "number"},
                    },
                },
            },
            "required": ["url"],
            "additionalProperties": False,
        }

    def parse_options(self, tool_input: dict[str, Any]) -> dict[str, Any]:
        pdf = tool_input.get("pdf")
        pdf = pdf if isinstance(pdf, dict) else {}
        page_format = pdf.get("format")
        landscape = pdf.get("landscape")
        return {
            "format": page_format if page_format in PAGE_FORMATS else "A4",
            "landscape": landscape if isinstance(landscape, bool) else False,
            "scale": _scale(pdf.get("scale")),
            "printBackground": True,
        }

    async def capture(self, page: Any, options: dict[str, Any], timeout_ms: int) -> bytes:
        return await page.pdf(
            format=options["format"],
            landscape=options["landscape"],
            scale=options["scale"],
            print_background=True,
        )
