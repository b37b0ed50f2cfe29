from __future__ import annotations

import asyncio

import pytest

from statepilot.core.effects import EffectDeclaration, EffectTracker


@pytest.mark.asyncio
async def test_request_id_pairing() -> None:
    tracker = EffectTracker(timeout_s=2.0)

    started = tracker.observe({"type": "todos/load/pending", "meta": {"request_id": "r-1"}})
    duplicate = tracker.observe({"type": "todos/load/pending", "meta": {"request_id": "r-1"}})
    tracker.observe({"type": "todos/load/fulfilled", "meta": {"requestId": "r-1"}})
    await asyncio.wait_for(tracker.wait_for_effects(), timeout=1.0)

    assert len(started) == 1
    assert duplicate == []
    assert tracker.side_effect_info()["completed_count"] == 1


@pytest.mark.asyncio
async def test_meta_markers_open_and_close_effects() -> None:
    tracker = EffectTracker(timeout_s=2.0)

    started = tracker.observe({"type": "sync", "meta": {"effect": True, "effect_id": "s1", "is_start": True}})
    tracker.observe({"type": "sync", "meta": {"effect": True, "effect_id": "s1", "is_end": True}})
    await asyncio.wait_for(tracker.wait_for_effects(), timeout=1.0)

    assert len(started) == 1
    assert tracker.side_effect_info()["completed_count"] == 1


@pytest.mark.asyncio
async def test_declared_effects_take_precedence_over_naming() -> None:
    tracker = EffectTracker(
        timeout_s=2.0,
        declarations=[EffectDeclaration(starts="upload/begin", ends=("upload/finished",), name="upload")],
    )

    started = tracker.observe({"type": "upload/begin"})
    assert started and started[0].startswith("declared-upload")

    tracker.observe({"type": "upload/finished"})
    await asyncio.wait_for(tracker.wait_for_effects(), timeout=1.0)

    assert tracker.side_effect_info()["effects"][0]["source_type"] == "declared"
    assert tracker.side_effect_info()["timed_out_count"] == 0
