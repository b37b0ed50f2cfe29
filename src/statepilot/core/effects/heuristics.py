"""Best-effort recognition of asynchronous lifecycle signals in command types.

Used only when the integrating application has not declared its effects
explicitly (see :class:`~statepilot.core.effects.tracker.EffectDeclaration`).
"""

from __future__ import annotations

import inspect
from typing import Any, Literal

Phase = Literal["start", "end"]

START_SUFFIXES = ("request", "pending", "start", "started", "begin", "trigger")
END_SUFFIXES = (
    "success",
    "succeeded",
    "failure",
    "failed",
    "fulfilled",
    "rejected",
    "complete",
    "completed",
    "done",
    "end",
    "error",
    "cancelled",
)
SEPARATORS = ("/", "_", ".", "-", ":")

REQUEST_START_SUFFIX = "/pending"
REQUEST_END_SUFFIXES = ("/fulfilled", "/rejected")


def _strip_suffix(action_type: str, suffix: str) -> str | None:
    lowered = action_type.casefold()
    for separator in SEPARATORS:
        marker = separator + suffix
        if lowered.endswith(marker) and len(action_type) > len(marker):
            return action_type[: -len(marker)]
    camel = suffix[0].upper() + suffix[1:]
    if action_type.endswith(camel) and len(action_type) > len(camel):
        head = action_type[: -len(camel)]
        if head[-1].islower() or head[-1].isdigit():
            return head
    return None


def split_lifecycle(action_type: str) -> tuple[str, Phase] | None:
    """Return ``(base, phase)`` when the type ends with a lifecycle suffix.

    ``"tasks/fetchRequest"`` and ``"tasks/fetch_success"`` share the base
    ``"tasks/fetch"``.
    """
    if not action_type:
        return None
    # longest suffixes first so "completed" wins over "complete"
    for suffix in sorted(START_SUFFIXES, key=len, reverse=True):
        base = _strip_suffix(action_type, suffix)
        if base:
            return base, "start"
    for suffix in sorted(END_SUFFIXES, key=len, reverse=True):
        base = _strip_suffix(action_type, suffix)
        if base:
            return base, "end"
    return None


def request_id_of(command: dict[str, Any]) -> str | None:
    meta = command.get("meta")
    if not isinstance(meta, dict):
        return None
    value = meta.get("request_id", meta.get("requestId"))
    return str(value) if value else None


def request_phase(action_type: str) -> Phase | None:
    if action_type.endswith(REQUEST_START_SUFFIX):
        return "start"
    if action_type.endswith(REQUEST_END_SUFFIXES):
        return "end"
    return None


def is_awaitable(value: Any) -> bool:
    return value is not None and inspect.isawaitable(value)
