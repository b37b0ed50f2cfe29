from __future__ import annotations

import json
from typing import Any, Sequence

import pytest

from statepilot.apps.api import deps
from statepilot.core.models import Message


class ScriptedBackend:
    """Generation backend that replays queued answers and records prompts."""

    def __init__(self, *responses: Any) -> None:
        self.responses: list[Any] = list(responses)
        self.calls: list[list[Message]] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def complete(self, messages: Sequence[Message]) -> str:
        self.calls.append(list(messages))
        if not self.responses:
            raise AssertionError("backend called more times than scripted")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, str):
            return response
        return json.dumps(response)

    def prompts(self) -> list[str]:
        return [call[-1].content for call in self.calls]


@pytest.fixture(autouse=True)
def isolated_state_dir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STATEPILOT_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("STATEPILOT_LOG_TO_FILE", "off")
    monkeypatch.setenv("STATEPILOT_LLM_PROVIDER", "off")
    monkeypatch.delenv("STATEPILOT_LLM_API_KEY", raising=False)
    monkeypatch.delenv("STATEPILOT_CATALOG_PATH", raising=False)
    monkeypatch.delenv("STATEPILOT_ENDPOINT", raising=False)
    monkeypatch.setenv("STATEPILOT_VECTOR_BACKEND", "memory")
    deps.reset_dependencies()
    yield tmp_path
    deps.reset_dependencies()


@pytest.fixture
def scripted_backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def task_catalog() -> list[dict[str, Any]]:
    return [
        {
            "type": "task/create",
            "description": "Create a new task",
            "keywords": ["task", "create", "add"],
            "paramsSchema": {
                "type": "object",
                "properties": {"title": {"type": "string"}},
                "required": ["title"],
            },
        },
        {"type": "task/clear", "description": "Remove every task"},
    ]
