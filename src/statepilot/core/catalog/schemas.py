from __future__ import annotations

from typing import Any, Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field

from statepilot.core.schema import ValidationIssue, ValidationResult, validate


class CatalogEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(min_length=1)
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    params_schema: dict[str, Any] | None = Field(default=None, alias="paramsSchema")

    def command_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {"type": {"const": self.type}},
            "required": ["type"],
        }
        if self.params_schema is not None:
            schema["properties"]["payload"] = self.params_schema
            schema["required"].append("payload")
        return schema

    def describe(self) -> dict[str, Any]:
        described: dict[str, Any] = {
            "type": self.type,
            "description": self.description,
            "keywords": list(self.keywords),
        }
        if self.params_schema is not None:
            described["params_schema"] = self.params_schema
            described["example_payload"] = example_value(self.params_schema)
        return described


def example_value(schema: Any) -> Any:
    if not isinstance(schema, dict):
        return None
    if "enum" in schema and schema["enum"]:
        return schema["enum"][0]
    if "const" in schema:
        return schema["const"]
    kind = schema.get("type")
    if kind == "string":
        return "example"
    if kind in {"number", "integer"}:
        return 42
    if kind == "boolean":
        return True
    if kind == "array":
        return [example_value(schema.get("items"))]
    if kind == "object":
        properties = schema.get("properties")
        if not isinstance(properties, dict):
            return {}
        return {key: example_value(value) for key, value in properties.items()}
    return None


class Catalog:
    """Caller-declared set of permitted commands, keyed by ``type``."""

    def __init__(self, entries: Iterable[CatalogEntry] = ()) -> None:
        self._entries: dict[str, CatalogEntry] = {}
        for entry in entries:
            if entry.type in self._entries:
                raise ValueError(f"duplicate catalog entry: {entry.type}")
            self._entries[entry.type] = entry

    @classmethod
    def parse(cls, raw: Any) -> "Catalog":
        """Build a catalog from a list of entries or a ``{type: entry}`` mapping."""
        if raw is None:
            return cls()
        if isinstance(raw, Catalog):
            return raw
        if isinstance(raw, dict):
            entries = []
            for action_type, body in raw.items():
                data = dict(body or {}) if isinstance(body, dict) else {}
                data.setdefault("type", action_type)
                entries.append(CatalogEntry.model_validate(data))
            return cls(entries)
        if isinstance(raw, list):
            return cls(
                item if isinstance(item, CatalogEntry) else CatalogEntry.model_validate(item)
                for item in raw
            )
        raise TypeError("catalog must be a list of entries or a mapping of type to entry")

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __contains__(self, action_type: object) -> bool:
        return action_type in self._entries

    def get(self, action_type: str) -> CatalogEntry | None:
        return self._entries.get(action_type)

    def types(self) -> list[str]:
        return list(self._entries.keys())

    def describe(self) -> list[dict[str, Any]]:
        return [entry.describe() for entry in self._entries.values()]

    def command_schema(self) -> dict[str, Any]:
        return {"oneOf": [entry.command_schema() for entry in self._entries.values()]}

    def validate_command(self, command: Any) -> ValidationResult:
        """Check a command against its catalog entry and return it normalized.

        Unknown top-level keys and payload fields the entry does not declare
        are dropped from the returned value.
        """
        if not isinstance(command, dict):
            return ValidationResult.failed(ValidationIssue(path="", message="must be object"))
        action_type = command.get("type")
        if not isinstance(action_type, str) or not action_type:
            return ValidationResult.failed(ValidationIssue(path="", message="must have required property 'type'"))
        entry = self._entries.get(action_type)
        if entry is None:
            return ValidationResult.failed(
                ValidationIssue(path="/type", message=f"unknown action type '{action_type}'")
            )

        if entry.params_schema is None:
            return ValidationResult.ok({"type": action_type})

        if "payload" in command:
            payload = command["payload"]
        elif entry.params_schema.get("type") == "object":
            payload = {}
        else:
            return ValidationResult.failed(ValidationIssue(path="", message="must have required property 'payload'"))

        result = validate(payload, entry.params_schema)
        if not result.valid:
            return ValidationResult.failed(
                *[
                    ValidationIssue(path=f"/payload{issue.path}", message=issue.message)
                    for issue in result.errors
                ]
            )
        return ValidationResult.ok({"type": action_type, "payload": result.value})
