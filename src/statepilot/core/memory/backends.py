from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterable, Protocol

from .schemas import STORAGE_VERSION, SimilarityEntry

logger = logging.getLogger("statepilot.memory")


class EntryBackend(Protocol):
    def put(self, entry: SimilarityEntry) -> None: ...

    def load_all(self) -> list[SimilarityEntry]: ...

    def delete(self, entry_ids: Iterable[str]) -> None: ...

    def clear(self) -> None: ...


class InMemoryBackend:
    def __init__(self) -> None:
        self._entries: dict[str, SimilarityEntry] = {}
        self._lock = threading.Lock()

    def put(self, entry: SimilarityEntry) -> None:
        with self._lock:
            if entry.id in self._entries:
                raise ValueError(f"entry already exists: {entry.id}")
            self._entries[entry.id] = entry

    def load_all(self) -> list[SimilarityEntry]:
        with self._lock:
            return list(self._entries.values())

    def delete(self, entry_ids: Iterable[str]) -> None:
        with self._lock:
            for entry_id in entry_ids:
                self._entries.pop(entry_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


def _line_id(line: str) -> str | None:
    """Id of a current-version entry line, or None for lines this layout does not own."""
    try:
        raw = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(raw, dict) or raw.get("version") != STORAGE_VERSION:
        return None
    entry_id = raw.get("id")
    return entry_id if isinstance(entry_id, str) else None


class JsonlBackend:
    """Append-only JSON lines file, one entry per line.

    Lines written under another storage version are skipped on load.
    """

    def __init__(self, file_path: Path) -> None:
        self.file_path = file_path
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _load_unlocked(self) -> list[SimilarityEntry]:
        if not self.file_path.exists():
            return []
        entries: list[SimilarityEntry] = []
        skipped = 0
        with self.file_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = SimilarityEntry.model_validate(json.loads(line))
                except (json.JSONDecodeError, ValueError):
                    skipped += 1
                    continue
                if entry.version != STORAGE_VERSION:
                    skipped += 1
                    continue
                entries.append(entry)
        if skipped:
            logger.warning("similarity_entries_skipped", extra={"extra_fields": {"count": skipped, "path": str(self.file_path)}})
        return entries

    def _write_unlocked(self, entries: list[SimilarityEntry]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with self.file_path.open("w", encoding="utf-8") as handle:
            for entry in entries:
                handle.write(json.dumps(entry.model_dump(), ensure_ascii=False, default=str) + "\n")

    def put(self, entry: SimilarityEntry) -> None:
        with self._lock:
            with self.file_path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry.model_dump(), ensure_ascii=False, default=str) + "\n")

    def load_all(self) -> list[SimilarityEntry]:
        with self._lock:
            return self._load_unlocked()

    def delete(self, entry_ids: Iterable[str]) -> None:
        """Drop the lines owned by ``entry_ids``; every other line is kept verbatim."""
        doomed = set(entry_ids)
        if not doomed or not self.file_path.exists():
            return
        with self._lock:
            kept: list[str] = []
            with self.file_path.open("r", encoding="utf-8") as handle:
                for line in handle:
                    if not line.strip():
                        continue
                    if _line_id(line) in doomed:
                        continue
                    kept.append(line if line.endswith("\n") else line + "\n")
            with self.file_path.open("w", encoding="utf-8") as handle:
                handle.writelines(kept)

    def clear(self) -> None:
        with self._lock:
            self._write_unlocked([])
