"""Structural validation of untrusted values against JSON Schema documents.

``validate`` never raises: an invalid value, and an invalid schema, both come
back as a failed :class:`ValidationResult` carrying ``{path, message}`` issues.
Paths are JSON pointers into the validated value (``""`` is the root).
"""

from __future__ import annotations

import copy
import re
from typing import Any

from jsonschema import exceptions as jsonschema_exceptions
from jsonschema.validators import validator_for
from pydantic import BaseModel, Field
from referencing.exceptions import Unresolvable

_REQUIRED_RE = re.compile(r"^'(.+)' is a required property$")

_TYPE_NAMES = {
    "object": "object",
    "array": "array",
    "string": "string",
    "integer": "integer",
    "number": "number",
    "boolean": "boolean",
    "null": "null",
}


class ValidationIssue(BaseModel):
    path: str = ""
    message: str


class ValidationResult(BaseModel):
    valid: bool
    value: Any = None
    errors: list[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def ok(cls, value: Any) -> "ValidationResult":
        return cls(valid=True, value=value, errors=[])

    @classmethod
    def failed(cls, *issues: ValidationIssue) -> "ValidationResult":
        return cls(valid=False, value=None, errors=list(issues))

    def messages(self) -> list[str]:
        return [f"{issue.path or '/'}: {issue.message}" for issue in self.errors]


def _pointer(parts) -> str:
    if not parts:
        return ""
    escaped = [str(part).replace("~", "~0").replace("/", "~1") for part in parts]
    return "/" + "/".join(escaped)


def _message(error: jsonschema_exceptions.ValidationError) -> str:
    if error.validator == "type":
        expected = error.validator_value
        if isinstance(expected, list):
            return "must be " + " or ".join(_TYPE_NAMES.get(str(item), str(item)) for item in expected)
        return f"must be {_TYPE_NAMES.get(str(expected), str(expected))}"
    if error.validator == "required":
        match = _REQUIRED_RE.match(error.message)
        if match:
            return f"must have required property '{match.group(1)}'"
    if error.validator == "additionalProperties" and error.validator_value is False:
        return "must NOT have additional properties"
    if error.validator == "enum":
        return "must be equal to one of the allowed values"
    if error.validator == "const":
        return "must be equal to constant"
    return error.message


def _compile(schema: Any):
    if not isinstance(schema, dict) and not isinstance(schema, bool):
        raise jsonschema_exceptions.SchemaError("schema must be an object or boolean")
    validator_cls = validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def validate(data: Any, schema: Any, *, strip_unknown: bool = True) -> ValidationResult:
    try:
        validator = _compile(schema)
    except jsonschema_exceptions.SchemaError as exc:
        return ValidationResult.failed(ValidationIssue(path="", message=f"invalid schema: {exc.message}"))

    try:
        errors = sorted(validator.iter_errors(data), key=lambda err: (len(err.absolute_path), _pointer(err.absolute_path)))
    except Unresolvable as exc:
        # unresolvable $ref only surfaces once validation walks into it
        return ValidationResult.failed(ValidationIssue(path="", message=f"invalid schema: {exc}"))
    if errors:
        return ValidationResult.failed(
            *[ValidationIssue(path=_pointer(error.absolute_path), message=_message(error)) for error in errors]
        )

    value = normalize(data, schema) if strip_unknown else data
    return ValidationResult.ok(value)


def _matches(data: Any, schema: Any) -> bool:
    try:
        return _compile(schema).is_valid(data)
    except (jsonschema_exceptions.SchemaError, Unresolvable):
        return False


def normalize(data: Any, schema: Any) -> Any:
    """Return a copy of ``data`` without object keys the schema does not declare.

    Objects whose schema lists ``properties`` and does not opt into
    ``additionalProperties`` keep only the declared keys. ``oneOf`` / ``anyOf``
    normalize through the first branch the value satisfies.
    """
    if not isinstance(schema, dict):
        return copy.deepcopy(data)

    for combinator in ("oneOf", "anyOf"):
        branches = schema.get(combinator)
        if isinstance(branches, list):
            for branch in branches:
                if _matches(data, branch):
                    return normalize(data, branch)

    if isinstance(data, dict):
        properties = schema.get("properties")
        additional = schema.get("additionalProperties", None)
        if not isinstance(properties, dict):
            if isinstance(additional, dict):
                return {key: normalize(value, additional) for key, value in data.items()}
            return copy.deepcopy(data)

        output: dict[str, Any] = {}
        for key, value in data.items():
            if key in properties:
                output[key] = normalize(value, properties[key])
            elif additional is True:
                output[key] = copy.deepcopy(value)
            elif isinstance(additional, dict):
                output[key] = normalize(value, additional)
        return output

    if isinstance(data, list):
        items = schema.get("items")
        if isinstance(items, dict):
            return [normalize(item, items) for item in data]
        return copy.deepcopy(data)

    return copy.deepcopy(data)
