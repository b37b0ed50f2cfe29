from __future__ import annotations

import asyncio
import gc

import pytest

from statepilot.core.effects import EffectTracker


@pytest.mark.asyncio
async def test_lost_end_signal_times_out_instead_of_hanging() -> None:
    tracker = EffectTracker(timeout_s=0.05)

    tracker.observe({"type": "report/generate_start"})
    await asyncio.wait_for(tracker.wait_for_effects(), timeout=1.0)

    info = tracker.side_effect_info()
    assert info["pending_count"] == 0
    assert info["timed_out_count"] == 1
    assert info["effects"][0]["status"] == "timed-out"


@pytest.mark.asyncio
async def test_late_failure_of_timed_out_effect_is_retrieved() -> None:
    loop = asyncio.get_running_loop()
    reported: list[dict] = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    release = asyncio.Event()

    async def slow_failure() -> None:
        await release.wait()
        raise RuntimeError("late")

    tracker = EffectTracker(timeout_s=0.05)
    try:
        tracker.track("effect-1", slow_failure(), source_type="manual")
        await asyncio.wait_for(tracker.wait_for_effects(), timeout=1.0)
        release.set()
        for _ in range(3):
            await asyncio.sleep(0)
        gc.collect()
    finally:
        loop.set_exception_handler(None)

    assert tracker.side_effect_info()["timed_out_count"] == 1
    assert not [context for context in reported if "never retrieved" in str(context.get("message", ""))]
