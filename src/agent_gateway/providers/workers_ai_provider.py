from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from loguru import logger
from tenacity import retry

from agent_gateway.providers.common import default_retry_kwargs, result_text

_API_BASE = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run"
_TIMEOUT = httpx.Timeout(120.0, connect=10.0)


def _unwrap(data: Any) -> Any:
    if isinstance(data, dict) and "result" in data:
        return data["result"]
    return data


class WorkersAIProvider:
    """Cloudflare Workers AI over its REST API."""

    def __init__(
        self,
        account_id: str,
        api_token: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = _API_BASE.format(account_id=account_id)
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=_TIMEOUT,
            transport=transport,
        )

    def _url(self, model: str) -> str:
        return f"{self._base_url}/{model.lstrip('/')}"

    @retry(**default_retry_kwargs((httpx.TransportError,)))
    async def run(self, model: str, inputs: dict[str, Any]) -> Any:
        logger.debug(
            f"API request: model={model}, messages={len(inputs.get('messages', []))}, "
            f"tools={len(inputs.get('tools', []))}"
        )
        response = await self._client.post(self._url(model), json=inputs)
        response.raise_for_status()
        result = _unwrap(response.json())
        logger.debug(f"API response: status={response.status_code}, keys={list(result) if isinstance(result, dict) else type(result).__name__}")
        return result

    @asynccontextmanager
    async def stream_chat(self, model: str, messages: list[dict]) -> AsyncIterator[AsyncIterator[bytes] | Any]:
        logger.debug(f"Stream request: model={model}, messages={len(messages)}")
        async with self._client.stream(
            "POST",
            self._url(model),
            json={"messages": messages, "stream": True},
        ) as response:
            response.raise_for_status()
            content_type = response.headers.get("content-type", "")
            if "text/event-stream" in content_type:
                yield response.aiter_bytes()
                return
            await response.aread()
            result = _unwrap(response.json())
            text = result_text(result)
            yield text if text is not None else result

    async def close(self) -> None:
        await self._client.aclose()
