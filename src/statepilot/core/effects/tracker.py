"""Registry of asynchronous work started by dispatched commands.

A tracker instance is the single authority on which effects are still
outstanding. Scope one instance per session to isolate conversations; a
shared instance makes every session observe every other session's effects.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable

from statepilot.core.logging.context import log_context

from .heuristics import is_awaitable, request_id_of, request_phase, split_lifecycle

logger = logging.getLogger("statepilot.effects")


def _consume_outcome(future: asyncio.Future) -> None:
    # retrieves late failures of timed-out effects
    if not future.cancelled() and future.exception() is not None:
        logger.debug("late_effect_failure", extra={"extra_fields": {"error": repr(future.exception())}})


class EffectStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    TIMED_OUT = "timed-out"


@dataclass
class TrackedEffect:
    effect_id: str
    source_type: str
    start_time: float
    status: EffectStatus = EffectStatus.PENDING
    end_time: float | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "effect_id": self.effect_id,
            "source_type": self.source_type,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status.value,
            "error": self.error,
        }


@dataclass(frozen=True)
class EffectDeclaration:
    """Caller-declared pairing: ``starts`` opens an effect that any of ``ends`` closes."""

    starts: str
    ends: tuple[str, ...]
    name: str | None = None

    @property
    def key(self) -> str:
        return self.name or self.starts


class EffectTracker:
    def __init__(
        self,
        timeout_s: float = 30.0,
        on_effects_completed: Callable[[], None] | None = None,
        declarations: Iterable[EffectDeclaration] = (),
        naming_heuristics: bool = True,
        history_size: int = 200,
    ) -> None:
        self.timeout_s = timeout_s
        self.on_effects_completed = on_effects_completed
        self.naming_heuristics = naming_heuristics
        self._lock = threading.Lock()
        self._pending: dict[str, asyncio.Task] = {}
        self._signals: dict[str, asyncio.Future] = {}
        self._open_by_key: dict[str, deque[str]] = {}
        self._effects: deque[TrackedEffect] = deque(maxlen=max(1, history_size))
        self._completed_count = 0
        self._timed_out_count = 0
        self._counter = itertools.count(1)
        self._starts: dict[str, EffectDeclaration] = {}
        self._ends: dict[str, EffectDeclaration] = {}
        for declaration in declarations:
            self.declare(declaration)

    def declare(self, declaration: EffectDeclaration) -> None:
        self._starts[declaration.starts] = declaration
        for end_type in declaration.ends:
            self._ends[end_type] = declaration

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter)}"

    # -- tracking -----------------------------------------------------------

    def track(self, effect_id: str, awaitable: Awaitable[Any], source_type: str = "manual") -> asyncio.Task:
        """Register ``awaitable`` as pending until it settles or times out.

        Must be called with a running event loop. Failures of the awaitable
        are logged and swallowed.
        """
        future = asyncio.ensure_future(awaitable)
        effect = TrackedEffect(effect_id=effect_id, source_type=source_type, start_time=time.time())
        task = asyncio.get_running_loop().create_task(self._watch(effect, future))
        with self._lock:
            self._pending[effect_id] = task
            self._effects.append(effect)
        logger.debug(
            "effect_tracked",
            extra={"extra_fields": {"effect_id": effect_id, "source_type": source_type}},
        )
        return task

    async def _watch(self, effect: TrackedEffect, future: asyncio.Future) -> None:
        with log_context(effect_id=effect.effect_id):
            try:
                done, _ = await asyncio.wait({future}, timeout=self.timeout_s)
                if not done:
                    effect.status = EffectStatus.TIMED_OUT
                    logger.warning(
                        "effect_timed_out",
                        extra={"extra_fields": {"source_type": effect.source_type, "timeout_s": self.timeout_s}},
                    )
                    future.add_done_callback(_consume_outcome)
                    return
                if future.cancelled():
                    effect.error = "cancelled"
                elif future.exception() is not None:
                    effect.error = repr(future.exception())
                    logger.warning(
                        "effect_failed",
                        extra={"extra_fields": {"source_type": effect.source_type, "error": effect.error}},
                    )
                effect.status = EffectStatus.COMPLETED
                logger.debug("effect_settled", extra={"extra_fields": {"source_type": effect.source_type}})
            finally:
                self._settle(effect)

    def _settle(self, effect: TrackedEffect) -> None:
        effect.end_time = time.time()
        with self._lock:
            self._pending.pop(effect.effect_id, None)
            signal = self._signals.pop(effect.effect_id, None)
            for queue in self._open_by_key.values():
                if effect.effect_id in queue:
                    queue.remove(effect.effect_id)
            if effect.status is EffectStatus.TIMED_OUT:
                self._timed_out_count += 1
            else:
                self._completed_count += 1
        if signal is not None and not signal.done():
            signal.cancel()

    def _open_signal(self, key: str, prefix: str, source_type: str) -> str | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("effect_untracked", extra={"extra_fields": {"reason": "no running event loop", "key": key}})
            return None
        effect_id = self._next_id(prefix)
        future = loop.create_future()
        with self._lock:
            self._signals[effect_id] = future
            self._open_by_key.setdefault(key, deque()).append(effect_id)
        self.track(effect_id, future, source_type=source_type)
        return effect_id

    def _close_signal(self, key: str) -> str | None:
        with self._lock:
            queue = self._open_by_key.get(key)
            if not queue:
                return None
            # FIFO: the oldest in-flight instance of this base is closed first.
            effect_id = queue.popleft()
            future = self._signals.get(effect_id)
        if future is not None and not future.done():
            future.set_result(None)
        return effect_id

    def _track_awaitable(self, value: Any, prefix: str, source_type: str) -> str | None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("effect_untracked", extra={"extra_fields": {"reason": "no running event loop", "source_type": source_type}})
            return None
        effect_id = self._next_id(prefix)
        self.track(effect_id, value, source_type=source_type)
        return effect_id

    # -- detection ----------------------------------------------------------

    def observe(self, command: Any, result: Any = None) -> list[str]:
        """Inspect a dispatched command (and the dispatch result) for effects.

        Returns the ids of effects that were started.
        """
        if not isinstance(command, dict):
            return []
        action_type = str(command.get("type") or "unknown")
        started: list[str] = []

        def _add(effect_id: str | None) -> None:
            if effect_id:
                started.append(effect_id)

        meta = command.get("meta") if isinstance(command.get("meta"), dict) else {}
        request_id = request_id_of(command)
        signalled = False

        if request_id is not None:
            phase = request_phase(action_type)
            key = f"request:{request_id}"
            if phase == "start":
                with self._lock:
                    already_open = bool(self._open_by_key.get(key))
                if not already_open:
                    _add(self._open_signal(key, f"request-{request_id}", "request-id"))
                signalled = True
            elif phase == "end":
                self._close_signal(key)
                with self._lock:
                    self._open_by_key.pop(key, None)
                signalled = True

        if is_awaitable(command.get("payload")):
            _add(self._track_awaitable(command["payload"], f"payload-{action_type}", "payload"))

        if meta.get("effect") is True or meta.get("_effect") is True:
            marker_id = str(meta.get("effect_id") or meta.get("effectId") or action_type)
            key = f"marker:{marker_id}"
            promise = meta.get("promise")
            if is_awaitable(promise):
                _add(self._track_awaitable(promise, f"marker-{marker_id}", "meta-promise"))
            elif meta.get("is_start") or meta.get("isStart"):
                _add(self._open_signal(key, f"marker-{marker_id}", "meta-marker"))
            elif meta.get("is_end") or meta.get("isEnd"):
                self._close_signal(key)
            signalled = True

        if not signalled:
            if action_type in self._starts:
                declaration = self._starts[action_type]
                _add(self._open_signal(f"declared:{declaration.key}", f"declared-{declaration.key}", "declared"))
            elif action_type in self._ends:
                self._close_signal(f"declared:{self._ends[action_type].key}")
            elif self.naming_heuristics:
                lifecycle = split_lifecycle(action_type)
                if lifecycle is not None:
                    base, phase = lifecycle
                    if phase == "start":
                        _add(self._open_signal(f"naming:{base}", f"naming-{base}", "naming"))
                    else:
                        self._close_signal(f"naming:{base}")

        if is_awaitable(result):
            _add(self._track_awaitable(result, f"result-{action_type}", "result"))

        for key, value in command.items():
            if key in {"type", "payload", "meta"}:
                continue
            if is_awaitable(value):
                _add(self._track_awaitable(value, f"prop-{key}-{action_type}", "property"))

        return started

    # -- waiting ------------------------------------------------------------

    def pending_ids(self) -> list[str]:
        with self._lock:
            return list(self._pending.keys())

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    async def wait_for_effects(self) -> None:
        if self.pending_count == 0:
            return

        logger.debug("effects_waiting", extra={"extra_fields": {"pending": self.pending_ids()}})
        while True:
            with self._lock:
                tasks = list(self._pending.values())
            if not tasks:
                break
            # effects started while waiting are picked up on the next pass
            await asyncio.gather(*tasks, return_exceptions=True)

        logger.info(
            "effects_drained",
            extra={"extra_fields": {"completed": self._completed_count, "timed_out": self._timed_out_count}},
        )
        if self.on_effects_completed is not None:
            self.on_effects_completed()

    # -- reporting ----------------------------------------------------------

    def side_effect_info(self) -> dict[str, Any]:
        with self._lock:
            return {
                "pending_count": len(self._pending),
                "completed_count": self._completed_count,
                "timed_out_count": self._timed_out_count,
                "effects": [effect.as_dict() for effect in self._effects],
            }

    def reset(self) -> None:
        """Forget history and counters; in-flight effects keep running."""
        with self._lock:
            pending = {effect.effect_id for effect in self._effects if effect.status is EffectStatus.PENDING}
            self._effects = deque(
                (effect for effect in self._effects if effect.effect_id in pending),
                maxlen=self._effects.maxlen,
            )
            self._completed_count = 0
            self._timed_out_count = 0
