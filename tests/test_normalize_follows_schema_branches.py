from __future__ import annotations

from statepilot.core.schema import normalize


def test_normalize_follows_matching_one_of_branch() -> None:
    schema = {
        "oneOf": [
            {"type": "object", "properties": {"kind": {"const": "a"}, "x": {"type": "integer"}}, "required": ["kind"]},
            {"type": "object", "properties": {"kind": {"const": "b"}, "y": {"type": "integer"}}, "required": ["kind"]},
        ]
    }

    assert normalize({"kind": "b", "x": 1, "y": 2}, schema) == {"kind": "b", "y": 2}


def test_normalize_keeps_keys_when_additional_properties_allowed() -> None:
    schema = {"type": "object", "properties": {"a": {"type": "integer"}}, "additionalProperties": True}

    assert normalize({"a": 1, "extra": {"nested": True}}, schema) == {"a": 1, "extra": {"nested": True}}
