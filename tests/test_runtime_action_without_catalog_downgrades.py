from __future__ import annotations

import pytest

from statepilot.core.observability.trace import Trace
from statepilot.core.runtime import Runtime


@pytest.mark.asyncio
async def test_action_intent_without_catalog_downgrades(scripted_backend) -> None:
    scripted_backend.queue(
        {"intent": "action", "message": "wants an action"},
        {"message": "I can't do that here.", "action": {"type": "task/create"}},
    )
    runtime = Runtime(scripted_backend)
    trace = Trace(query="create a task")

    response = await runtime.query("create a task", trace=trace)

    assert response.intent == "conversation"
    assert response.action is None
    assert trace.last("IntentDowngraded") == {"from": "action", "to": "conversation"}
