from __future__ import annotations

from statepilot.core.schema import validate


TASK_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "object", "properties": {"name": {"type": "string"}}}},
    },
    "required": ["title"],
}


def test_validate_accepts_and_strips_undeclared_fields() -> None:
    result = validate({"title": "Write report", "priority": "high"}, TASK_SCHEMA)

    assert result.valid is True
    assert result.value == {"title": "Write report"}
    assert result.errors == []


def test_validate_can_keep_unknown_fields() -> None:
    data = {"title": "Write report", "priority": "high"}

    result = validate(data, TASK_SCHEMA, strip_unknown=False)

    assert result.valid is True
    assert result.value == data
