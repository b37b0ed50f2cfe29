from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from .schemas import IntentClassification, normalize_intent


class ResponseParseError(RuntimeError):
    pass


class ClassificationError(ResponseParseError):
    pass


def extract_json_object(raw: str) -> dict[str, Any]:
    """Parse the first JSON object in ``raw``, tolerating markdown fences."""
    if not isinstance(raw, str):
        raise ResponseParseError("Invalid response: not text")
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.startswith("json"):
            cleaned = cleaned[4:].strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ResponseParseError("Invalid JSON response from provider")
    try:
        parsed = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ResponseParseError("Invalid JSON response from provider") from exc
    if not isinstance(parsed, dict):
        raise ResponseParseError("Invalid response: not an object")
    return parsed


def parse_classification(raw: str) -> IntentClassification:
    try:
        data = extract_json_object(raw)
    except ResponseParseError as exc:
        raise ClassificationError(f"Intent classification failed: {exc}") from exc
    try:
        return IntentClassification.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "response"
        raise ClassificationError(f"Intent classification failed: {location}: {first.get('msg')}") from exc


def _reasoning(data: dict[str, Any]) -> list[str]:
    raw = data.get("reasoning")
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, list):
        return [str(item) for item in raw]
    raise ResponseParseError("Response reasoning must be a list of strings")


def _message(data: dict[str, Any]) -> str:
    message = data.get("message")
    if not isinstance(message, str) or not message:
        raise ResponseParseError("Response missing required message property")
    return message


def parse_stage_response(raw: str) -> dict[str, Any]:
    """Return ``{message, reasoning, action}`` from a single-stage answer."""
    data = extract_json_object(raw)
    action = data.get("action")
    if action is not None:
        if not isinstance(action, dict):
            raise ResponseParseError("Response action must be an object or null")
        if not isinstance(action.get("type"), str) or not action["type"]:
            raise ResponseParseError("Action response missing required type field")
    return {"message": _message(data), "reasoning": _reasoning(data), "action": action}


def parse_pipeline_plan(raw: str) -> tuple[str, list[dict[str, Any]]]:
    """Return the plan summary and its ordered step descriptors.

    Each descriptor is ``{query, intent, message}``; ``intent`` is passed
    through unvalidated so the caller decides how to treat unknown tags.
    """
    data = extract_json_object(raw)
    steps = data.get("steps", data.get("pipeline", data.get("workflow")))
    if not isinstance(steps, list):
        raise ResponseParseError("Pipeline response missing required steps list")

    descriptors: list[dict[str, Any]] = []
    for index, step in enumerate(steps):
        if not isinstance(step, dict):
            raise ResponseParseError(f"Pipeline step {index} must be an object")
        query = step.get("query")
        message = step.get("message")
        text = query if isinstance(query, str) and query.strip() else message
        if not isinstance(text, str) or not text.strip():
            raise ResponseParseError(f"Pipeline step {index} has neither query nor message")
        descriptors.append(
            {
                "query": text,
                "intent": normalize_intent(step.get("intent")),
                "message": message if isinstance(message, str) else text,
            }
        )

    summary = data.get("message")
    return (summary if isinstance(summary, str) and summary else "Processing the request step by step"), descriptors
