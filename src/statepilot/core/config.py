from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _is_on(name: str, default: str = "off") -> bool:
    return os.getenv(name, default).strip().casefold() == "on"


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def state_dir() -> Path:
    configured = os.getenv("STATEPILOT_STATE_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".statepilot"


@dataclass
class LLMConfig:
    provider: str
    url: str
    model: str
    api_key: str | None
    timeout_s: float
    temperature: float
    max_tokens: int

    @classmethod
    def from_env(cls) -> "LLMConfig":
        return cls(
            provider=os.getenv("STATEPILOT_LLM_PROVIDER", "off").casefold(),
            url=os.getenv("STATEPILOT_LLM_URL", "http://127.0.0.1:8001/v1/chat/completions"),
            model=os.getenv("STATEPILOT_LLM_MODEL", "gpt-4o-mini"),
            api_key=os.getenv("STATEPILOT_LLM_API_KEY") or None,
            timeout_s=max(0.1, _get_float_env("STATEPILOT_LLM_TIMEOUT_S", 30.0)),
            temperature=_get_float_env("STATEPILOT_LLM_TEMPERATURE", 0.2),
            max_tokens=_get_int_env("STATEPILOT_LLM_MAX_TOKENS", 1200),
        )


@dataclass
class VectorConfig:
    dimensions: int = 128
    max_entries: int = 100
    backend: str = "jsonl"
    collection_name: str = "statepilot_vector"

    @classmethod
    def from_env(cls) -> "VectorConfig":
        return cls(
            dimensions=max(1, _get_int_env("STATEPILOT_VECTOR_DIMENSIONS", 128)),
            max_entries=max(1, _get_int_env("STATEPILOT_VECTOR_MAX_ENTRIES", 100)),
            backend=os.getenv("STATEPILOT_VECTOR_BACKEND", "jsonl").casefold(),
            collection_name=os.getenv("STATEPILOT_VECTOR_COLLECTION", "statepilot_vector"),
        )


@dataclass
class Settings:
    state_dir: Path
    endpoint: str = "/api/query"
    catalog_path: str | None = None
    history_limit: int = 3
    effect_timeout_s: float = 30.0
    debug: bool = False
    llm: LLMConfig = field(default_factory=LLMConfig.from_env)
    vector: VectorConfig = field(default_factory=VectorConfig.from_env)

    @classmethod
    def from_env(cls) -> "Settings":
        endpoint = os.getenv("STATEPILOT_ENDPOINT", "/api/query").strip() or "/api/query"
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return cls(
            state_dir=state_dir(),
            endpoint=endpoint,
            catalog_path=os.getenv("STATEPILOT_CATALOG_PATH") or None,
            history_limit=max(0, _get_int_env("STATEPILOT_HISTORY_LIMIT", 3)),
            effect_timeout_s=max(0.01, _get_float_env("STATEPILOT_EFFECT_TIMEOUT_S", 30.0)),
            debug=_is_on("STATEPILOT_DEBUG"),
        )
