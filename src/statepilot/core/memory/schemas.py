from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

STORAGE_VERSION = 1


class InteractionMetadata(BaseModel):
    query: str
    response: str
    state: Any = None
    timestamp: str
    intent: str | None = None
    action: dict[str, Any] | None = None


class SimilarityEntry(BaseModel):
    id: str
    vector: list[float]
    metadata: InteractionMetadata
    timestamp: float
    version: int = Field(default=STORAGE_VERSION)
