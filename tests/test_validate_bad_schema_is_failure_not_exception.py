from __future__ import annotations

from statepilot.core.schema import normalize, validate


def test_validate_invalid_schema_is_a_failure_not_an_exception() -> None:
    result = validate({"title": "x"}, {"type": "not-a-type"})

    assert result.valid is False
    assert result.errors[0].path == ""
    assert result.errors[0].message.startswith("invalid schema")


def test_validate_unresolvable_ref_is_a_failure_not_an_exception() -> None:
    result = validate({"a": 1}, {"$ref": "#/definitions/missing"})

    assert result.valid is False
    assert result.errors[0].path == ""
    assert result.errors[0].message.startswith("invalid schema")


def test_normalize_skips_branch_with_unresolvable_ref() -> None:
    schema = {
        "oneOf": [
            {"$ref": "#/definitions/missing"},
            {"type": "object", "properties": {"id": {"type": "string"}}},
        ]
    }

    assert normalize({"id": "1", "extra": True}, schema) == {"id": "1"}
