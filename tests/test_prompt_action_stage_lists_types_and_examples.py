from __future__ import annotations

from statepilot.core.catalog import Catalog
from statepilot.core.prompts import PromptParams, generate_prompt


def _params(task_catalog, **overrides) -> PromptParams:
    values = {
        "query": "create a task called Review",
        "actions": Catalog.parse(task_catalog),
        "state": {"tasks": [{"id": "t-1", "title": "Draft"}]},
        "conversations": "User: hi\nAssistant: hello",
    }
    values.update(overrides)
    return PromptParams(**values)


def test_action_prompt_lists_valid_types_and_examples(task_catalog) -> None:
    prompt = generate_prompt("action", _params(task_catalog))

    assert '- "task/create"' in prompt
    assert '- "task/clear"' in prompt
    assert '"example_payload"' in prompt
    assert "PARAMETER RESOLUTION EXAMPLES" in prompt


def test_action_prompt_without_state_skips_resolution_examples(task_catalog) -> None:
    prompt = generate_prompt("action", _params(task_catalog, state=None))

    assert "PARAMETER RESOLUTION EXAMPLES" not in prompt
    assert "CURRENT STATE" not in prompt.split("VALID ACTION TYPES")[0]
