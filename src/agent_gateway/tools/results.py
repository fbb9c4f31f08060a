from typing import Any

BAD_URL = "BAD_URL"
NAV_TIMEOUT = "NAV_TIMEOUT"
NAV_FAIL = "NAV_FAIL"
CAPTURE_FAIL = "CAPTURE_FAIL"
UPLOAD_FAIL = "UPLOAD_FAIL"


def tool_error(error: str, code: str | None = None) -> dict[str, Any]:
    result: dict[str, Any] = {"ok": False, "error": error}
    if code is not None:
        result["code"] = code
    return result


def tool_result_envelope(tool_name: str, result: dict[str, Any]) -> dict[str, Any]:
    return {"type": "tool_result", "tool": tool_name, "result": result}
