from __future__ import annotations

import pytest

from statepilot.core.catalog import Catalog
from statepilot.core.prompts import JSON_FORMAT_MESSAGE, STAGES, PromptError, PromptParams, generate_prompt


def _params(task_catalog, **overrides) -> PromptParams:
    values = {
        "query": "create a task called Review",
        "actions": Catalog.parse(task_catalog),
        "state": {"tasks": [{"id": "t-1", "title": "Draft"}]},
        "conversations": "User: hi\nAssistant: hello",
    }
    values.update(overrides)
    return PromptParams(**values)


def test_every_stage_is_pure_and_ends_with_json_instruction(task_catalog) -> None:
    params = _params(task_catalog)

    for stage in STAGES:
        first = generate_prompt(stage, params)
        second = generate_prompt(stage, params)
        assert first == second
        assert first.endswith(JSON_FORMAT_MESSAGE)
        assert 'USER QUERY: "create a task called Review"' in first


def test_stage_preconditions(task_catalog) -> None:
    with pytest.raises(PromptError):
        generate_prompt("action", _params(task_catalog, actions=None))
    with pytest.raises(PromptError):
        generate_prompt("action", _params(task_catalog, actions=Catalog()))
    with pytest.raises(PromptError):
        generate_prompt("state", _params(task_catalog, state=None))
    with pytest.raises(PromptError):
        generate_prompt("summary", _params(task_catalog))
