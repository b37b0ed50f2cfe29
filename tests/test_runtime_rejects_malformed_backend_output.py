from __future__ import annotations

import pytest

from statepilot.core.runtime import ClassificationError, ResponseParseError, Runtime


@pytest.mark.asyncio
async def test_malformed_classification_is_fatal(scripted_backend) -> None:
    scripted_backend.queue("this is not json")
    runtime = Runtime(scripted_backend)

    with pytest.raises(ClassificationError):
        await runtime.query("hello")


@pytest.mark.asyncio
async def test_unknown_intent_is_fatal(scripted_backend) -> None:
    scripted_backend.queue({"intent": "dance", "message": "?"})
    runtime = Runtime(scripted_backend)

    with pytest.raises(ClassificationError):
        await runtime.query("hello")


@pytest.mark.asyncio
async def test_stage_response_without_message_is_rejected(scripted_backend) -> None:
    scripted_backend.queue({"intent": "conversation", "message": "chat"}, {"action": None})
    runtime = Runtime(scripted_backend)

    with pytest.raises(ResponseParseError):
        await runtime.query("hello")
