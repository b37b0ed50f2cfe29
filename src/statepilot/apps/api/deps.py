from __future__ import annotations

from functools import lru_cache

from statepilot.core.catalog import Catalog, load_catalog
from statepilot.core.config import Settings
from statepilot.core.effects import EffectTracker
from statepilot.core.memory import SimilarityStore
from statepilot.core.models import GenerationBackend, build_backend
from statepilot.core.runtime import Runtime


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def get_backend() -> GenerationBackend:
    return build_backend(get_settings().llm)


@lru_cache(maxsize=1)
def get_runtime() -> Runtime:
    settings = get_settings()
    return Runtime(backend=get_backend(), debug=settings.debug)


@lru_cache(maxsize=1)
def get_similarity_store() -> SimilarityStore:
    settings = get_settings()
    return SimilarityStore.from_config(settings.vector, settings.state_dir)


@lru_cache(maxsize=1)
def get_effect_tracker() -> EffectTracker:
    return EffectTracker(timeout_s=get_settings().effect_timeout_s)


@lru_cache(maxsize=1)
def get_default_catalog() -> Catalog:
    path = get_settings().catalog_path
    if not path:
        return Catalog()
    return load_catalog(path)


def reset_dependencies() -> None:
    for provider in (
        get_settings,
        get_backend,
        get_runtime,
        get_similarity_store,
        get_effect_tracker,
        get_default_catalog,
    ):
        provider.cache_clear()
