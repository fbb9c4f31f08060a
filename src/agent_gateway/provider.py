from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, runtime_checkable

from agent_gateway.app_config import RuntimeEnv


@runtime_checkable
class LLMProvider(Protocol):
    async def run(self, model: str, inputs: dict[str, Any]) -> Any:
        """Non-streaming call.

        ``inputs`` carries ``messages`` and optionally ``tools``, ``temperature``
        and ``max_tokens``. Returns a mapping with ``response`` and
        ``tool_calls`` keys, or a plain string.
        """
        ...

    def stream_chat(
        self,
        model: str,
        messages: list[dict],
    ) -> AbstractAsyncContextManager[AsyncIterator[bytes] | Any]:
        """Open a token stream.

        The context value is an async iterator of raw event-stream bytes, or a
        non-stream result (normally the full text) when the backend did not
        stream.
        """
        ...

    async def close(self) -> None: ...


def create_provider(provider_name: str, env: RuntimeEnv) -> LLMProvider:
    """Factory: create an LLMProvider by name."""
    name = provider_name.strip().lower()
    if name in ("workers-ai", "cloudflare"):
        if not env.cloudflare_account_id or not env.cloudflare_api_token:
            raise ValueError("CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN are required for the workers-ai provider")
        from agent_gateway.providers.workers_ai_provider import WorkersAIProvider
        return WorkersAIProvider(env.cloudflare_account_id, env.cloudflare_api_token)
    if name == "openai":
        if not env.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai provider")
        from agent_gateway.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(env.openai_api_key, env.openai_base_url)
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'workers-ai', 'openai'")
