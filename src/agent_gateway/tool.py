from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

ProgressSink = Callable[[str], None]


def ignore_progress(_: str) -> None:
    return None


@dataclass(frozen=True)
class ToolContext:
    session_id: str
    on_progress: ProgressSink = ignore_progress


@runtime_checkable
class Tool(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    async def execute(self, tool_input: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        """Run the tool. Never raises; failures come back as ``{"ok": False, ...}``."""
        ...


def to_function_schema(tool: Tool) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.input_schema,
        },
    }
