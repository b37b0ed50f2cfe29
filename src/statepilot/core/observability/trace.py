from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Trace:
    """Ordered record of what happened while answering one query."""

    query: str
    query_id: str | None = None
    correlation_id: str | None = None
    events: list[dict[str, Any]] = field(default_factory=list)
    started: float = field(default_factory=time.monotonic)

    def emit(self, name: str, payload: dict[str, Any]) -> None:
        enriched = dict(payload)
        for key in ("query_id", "correlation_id"):
            value = getattr(self, key)
            if value:
                enriched.setdefault(key, value)
        self.events.append(
            {
                "event": name,
                "elapsed_ms": int((time.monotonic() - self.started) * 1000),
                "payload": enriched,
            }
        )

    def names(self) -> list[str]:
        return [event["event"] for event in self.events]

    def last(self, name: str) -> dict[str, Any] | None:
        for event in reversed(self.events):
            if event["event"] == name:
                return event["payload"]
        return None
