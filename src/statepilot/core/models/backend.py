from __future__ import annotations

from typing import Literal, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel

from statepilot.core.config import LLMConfig

from .errors import BackendUnavailable


class Message(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


@runtime_checkable
class GenerationBackend(Protocol):
    async def complete(self, messages: Sequence[Message]) -> str: ...


class DisabledBackend:
    async def complete(self, messages: Sequence[Message]) -> str:
        raise BackendUnavailable("LLM provider is off")


def build_backend(config: LLMConfig | None = None) -> GenerationBackend:
    config = config or LLMConfig.from_env()
    if config.provider in {"http", "openai", "vllm"}:
        from .openai_compat import OpenAICompatBackend

        return OpenAICompatBackend(config)
    return DisabledBackend()
