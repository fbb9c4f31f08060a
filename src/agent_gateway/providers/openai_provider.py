from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import openai
from loguru import logger
from tenacity import retry

from agent_gateway.providers.common import default_retry_kwargs


def _to_openai_kwargs(model: str, inputs: dict[str, Any]) -> dict:
    kwargs: dict = dict(model=model, messages=inputs.get("messages", []))
    for key in ("temperature", "max_tokens"):
        if key in inputs:
            kwargs[key] = inputs[key]
    if inputs.get("tools"):
        kwargs["tools"] = inputs["tools"]
    return kwargs


class OpenAIProvider:
    """Any OpenAI-compatible chat-completions backend.

    Results are reshaped to the ``{"response", "tool_calls"}`` form the
    planner and summarizer read.
    """

    def __init__(self, api_key: str, base_url: str | None = None):
        self._client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url)

    @retry(**default_retry_kwargs((
        openai.RateLimitError,
        openai.APIConnectionError,
        openai.APITimeoutError,
    )))
    async def run(self, model: str, inputs: dict[str, Any]) -> dict:
        kwargs = _to_openai_kwargs(model, inputs)
        logger.debug(f"API request: model={model}, messages={len(kwargs['messages'])}, tools={len(kwargs.get('tools', []))}")
        response = await self._client.chat.completions.create(**kwargs)
        message = response.choices[0].message
        tool_calls = [
            {
                "id": tc.id,
                "type": "function",
                "function": {"name": tc.function.name, "arguments": tc.function.arguments},
            }
            for tc in (message.tool_calls or [])
        ]
        logger.debug(f"API response: text_len={len(message.content or '')}, tool_calls={len(tool_calls)}")
        return {"response": message.content or "", "tool_calls": tool_calls}

    @asynccontextmanager
    async def stream_chat(self, model: str, messages: list[dict]) -> AsyncIterator[AsyncIterator[bytes]]:
        # Raw SSE bytes; the relay reads choices[0].delta.content from each frame.
        logger.debug(f"Stream request: model={model}, messages={len(messages)}")
        async with self._client.chat.completions.with_streaming_response.create(
            model=model,
            messages=messages,
            stream=True,
        ) as response:
            yield response.iter_bytes()

    async def close(self) -> None:
        await self._client.close()
