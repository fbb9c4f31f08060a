from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from agent_gateway.app_config import AppConfig, RuntimeEnv
from agent_gateway.artifact_store import ArtifactStore, LocalArtifactStore
from agent_gateway.logging_config import setup_logging
from agent_gateway.memory import MemoryStore, MessageLog, SessionRegistry
from agent_gateway.provider import LLMProvider, create_provider
from agent_gateway.services.outcome_summary import ModelOutcomeSummarizer, OutcomeSummarizer
from agent_gateway.services.planner import Planner
from agent_gateway.services.session_controller import SessionController
from agent_gateway.services.session_hub import SessionHub
from agent_gateway.services.stream_relay import StreamRelay
from agent_gateway.system_prompt import build_planner_prompt, build_system_prompt
from agent_gateway.tool_registry import by_name, get_all
from agent_gateway.tools.browser.launcher import BrowserLauncher
from agent_gateway.tools.weather.weather_tool import WEATHER_TOOL_NAME


@dataclass
class AppRuntime:
    config: AppConfig
    hub: SessionHub
    memory_store: MemoryStore
    registry: SessionRegistry
    artifacts: ArtifactStore
    provider: LLMProvider
    tools: list
    log_descriptions: list[str]

    async def close(self) -> None:
        await self.provider.close()
        self.memory_store.close()


def _resolve(path: str) -> str:
    resolved = Path(path)
    if not resolved.is_absolute():
        resolved = Path.cwd() / resolved
    return str(resolved)


def bootstrap_runtime(
    app: AppConfig,
    env: RuntimeEnv,
    *,
    provider: LLMProvider | None = None,
    launcher: BrowserLauncher | None = None,
    artifacts: ArtifactStore | None = None,
    configure_logging: bool = True,
) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers) if configure_logging else []

    memory_store = MemoryStore(_resolve(app.memory_db_path))
    message_log = MessageLog(memory_store)
    registry = SessionRegistry(memory_store)
    if artifacts is None:
        artifacts = LocalArtifactStore(_resolve(app.artifact_dir))
    if provider is None:
        provider = create_provider(app.provider_name, env)

    tools = get_all(artifacts, launcher=launcher, settle_ms=app.settle_ms, headless=app.headless)
    tools_by_name = by_name(tools)

    system_prompt = build_system_prompt()
    planner = Planner(
        provider,
        tools_by_name[WEATHER_TOOL_NAME],
        build_planner_prompt(system_prompt),
        max_tokens=app.planner_max_tokens,
    )
    relay = StreamRelay(provider, system_prompt)
    summarizer = OutcomeSummarizer(ModelOutcomeSummarizer(provider, max_tokens=app.summary_max_tokens))

    def make_controller(session_id: str) -> SessionController:
        return SessionController(
            session_id,
            message_log=message_log,
            planner=planner,
            relay=relay,
            summarizer=summarizer,
            tools=tools_by_name,
            default_model=app.model,
            history_limit=app.history_limit,
            ttl_ms=app.session_ttl_seconds * 1000,
        )

    return AppRuntime(
        config=app,
        hub=SessionHub(make_controller),
        memory_store=memory_store,
        registry=registry,
        artifacts=artifacts,
        provider=provider,
        tools=tools,
        log_descriptions=log_descriptions,
    )
