from __future__ import annotations

import asyncio
import copy
import logging
import threading
import time
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Callable
from uuid import uuid4

from statepilot.core.config import VectorConfig

from .backends import EntryBackend, InMemoryBackend, JsonlBackend
from .embedding import cosine_similarity, text_to_vector
from .schemas import InteractionMetadata, SimilarityEntry

logger = logging.getLogger("statepilot.memory")

Listener = Callable[[SimilarityEntry], None]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SimilarityStore:
    """Append-only log of past interactions searchable by text similarity.

    Holds at most ``max_entries`` entries; the oldest are evicted first.
    """

    def __init__(self, backend: EntryBackend | None = None, dimensions: int = 128, max_entries: int = 100) -> None:
        self.backend = backend or InMemoryBackend()
        self.dimensions = max(1, dimensions)
        self.max_entries = max(1, max_entries)
        self._listeners: list[Listener] = []
        self._listeners_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: VectorConfig, state_dir: Path) -> "SimilarityStore":
        if config.backend == "memory":
            backend: EntryBackend = InMemoryBackend()
        else:
            backend = JsonlBackend(state_dir / f"{config.collection_name}.jsonl")
        return cls(backend=backend, dimensions=config.dimensions, max_entries=config.max_entries)

    def add_entry(self, vector: list[float], metadata: InteractionMetadata) -> SimilarityEntry:
        if len(vector) != self.dimensions:
            raise ValueError(f"vector must have {self.dimensions} dimensions, got {len(vector)}")
        entry = SimilarityEntry(
            id=str(uuid4()),
            vector=[float(value) for value in vector],
            metadata=metadata,
            timestamp=time.time(),
        )
        self.backend.put(entry)
        self._evict()
        self._notify(entry)
        return entry

    def store_interaction(
        self,
        query: str,
        response: str,
        state: Any = None,
        intent: str | None = None,
        action: dict[str, Any] | None = None,
    ) -> SimilarityEntry:
        metadata = InteractionMetadata(
            query=query,
            response=response,
            state=copy.deepcopy(state),
            timestamp=_now_iso(),
            intent=intent,
            action=action,
        )
        vector = text_to_vector(query, self.dimensions).tolist()
        entry = self.add_entry(vector, metadata)
        logger.info(
            "interaction_stored",
            extra={"extra_fields": {"entry_id": entry.id, "query_len": len(query), "intent": intent}},
        )
        return entry

    def retrieve_similar(self, query: str, limit: int = 5) -> list[SimilarityEntry]:
        limit = min(limit, self.max_entries)
        if limit <= 0:
            return []
        entries = self.backend.load_all()
        if not entries:
            return []
        target = text_to_vector(query or "", self.dimensions)
        scored = [(cosine_similarity(target, entry.vector), entry) for entry in entries]
        scored.sort(key=lambda item: (item[0], item[1].timestamp), reverse=True)
        return [entry for _, entry in scored[:limit]]

    def get_all_entries(self) -> list[SimilarityEntry]:
        return sorted(self.backend.load_all(), key=lambda entry: entry.timestamp)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def clear(self) -> None:
        self.backend.clear()

    async def astore_interaction(self, query: str, response: str, state: Any = None, **kwargs: Any) -> SimilarityEntry:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.store_interaction, query, response, state, **kwargs))

    async def aretrieve_similar(self, query: str, limit: int = 5) -> list[SimilarityEntry]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.retrieve_similar, query, limit)

    def _evict(self) -> None:
        entries = self.get_all_entries()
        excess = len(entries) - self.max_entries
        if excess <= 0:
            return
        evicted = [entry.id for entry in entries[:excess]]
        self.backend.delete(evicted)
        logger.info("similarity_entries_evicted", extra={"extra_fields": {"count": len(evicted)}})

    def _notify(self, entry: SimilarityEntry) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(entry)
            except Exception:
                logger.exception("similarity_listener_failed")


def format_history(entries: list[SimilarityEntry]) -> str:
    return "\n\n".join(
        f"User: {entry.metadata.query}\nAssistant: {entry.metadata.response}" for entry in entries
    )
