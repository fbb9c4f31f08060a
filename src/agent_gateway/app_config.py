from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL = "@cf/meta/llama-4-scout-17b-16e-instruct"


@dataclass
class RuntimeEnv:
    cloudflare_account_id: str | None
    cloudflare_api_token: str | None
    openai_api_key: str | None
    openai_base_url: str | None


@dataclass
class AppConfig:
    provider_name: str
    model: str
    host: str
    port: int
    memory_db_path: str
    artifact_dir: str
    history_limit: int
    session_ttl_seconds: int
    settle_ms: int
    planner_max_tokens: int
    summary_max_tokens: int
    headless: bool
    log_level: str
    log_consumers: list | None


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def parse_app_config(config: dict) -> AppConfig:
    return AppConfig(
        provider_name=config.get("Provider", "workers-ai").strip().lower(),
        model=config.get("Model", DEFAULT_MODEL),
        host=config.get("Host", "127.0.0.1"),
        port=int(config.get("Port", 8787)),
        memory_db_path=str(config.get("MemoryDbPath", ".agent_gateway/messages.db")),
        artifact_dir=str(config.get("ArtifactDir", ".agent_gateway/files")),
        history_limit=int(config.get("HistoryLimit", 40)),
        session_ttl_seconds=int(config.get("SessionTtlSeconds", 86_400)),
        settle_ms=int(config.get("SettleMs", 1200)),
        planner_max_tokens=int(config.get("PlannerMaxTokens", 200)),
        summary_max_tokens=int(config.get("SummaryMaxTokens", 150)),
        headless=_to_bool(config.get("Headless", True), default=True),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env() -> RuntimeEnv:
    return RuntimeEnv(
        cloudflare_account_id=os.environ.get("CLOUDFLARE_ACCOUNT_ID"),
        cloudflare_api_token=os.environ.get("CLOUDFLARE_API_TOKEN"),
        openai_api_key=os.environ.get("OPENAI_API_KEY"),
        openai_base_url=os.environ.get("OPENAI_BASE_URL"),
    )
