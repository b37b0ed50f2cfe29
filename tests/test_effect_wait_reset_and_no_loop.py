from __future__ import annotations

import asyncio

import pytest

from statepilot.core.effects import EffectTracker


@pytest.mark.asyncio
async def test_wait_on_empty_set_returns_without_callback() -> None:
    calls: list[int] = []
    tracker = EffectTracker(on_effects_completed=lambda: calls.append(1))

    await asyncio.wait_for(tracker.wait_for_effects(), timeout=0.5)

    assert calls == []
    assert tracker.pending_count == 0


@pytest.mark.asyncio
async def test_reset_clears_history_and_counters() -> None:
    tracker = EffectTracker(timeout_s=1.0)
    tracker.track("effect-1", asyncio.sleep(0))
    await tracker.wait_for_effects()

    tracker.reset()

    info = tracker.side_effect_info()
    assert info["completed_count"] == 0
    assert info["effects"] == []


def test_observe_without_event_loop_does_not_track() -> None:
    tracker = EffectTracker()

    assert tracker.observe({"type": "tasks/fetchRequest"}) == []
    assert tracker.observe("not a command") == []
