from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from statepilot.core.catalog import Catalog

Intent = Literal["action", "state", "conversation", "pipeline"]
StepIntent = Literal["action", "state", "conversation"]

TOP_LEVEL_INTENTS: frozenset[str] = frozenset({"action", "state", "conversation", "pipeline"})
STEP_INTENTS: frozenset[str] = frozenset({"action", "state", "conversation"})

_INTENT_ALIASES = {"workflow": "pipeline"}


def normalize_intent(raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    cleaned = raw.strip().casefold()
    return _INTENT_ALIASES.get(cleaned, cleaned)


def _reasoning_list(raw: Any) -> Any:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    return raw


class IntentClassification(BaseModel):
    intent: Intent
    message: str
    reasoning: list[str] = Field(default_factory=list)

    @field_validator("intent", mode="before")
    @classmethod
    def _alias_intent(cls, value: Any) -> Any:
        return normalize_intent(value)

    @field_validator("reasoning", mode="before")
    @classmethod
    def _coerce_reasoning(cls, value: Any) -> Any:
        return _reasoning_list(value)


class StepResult(BaseModel):
    intent: StepIntent
    message: str
    reasoning: list[str] = Field(default_factory=list)
    action: dict[str, Any] | None = None
    query: str = ""


class CompletionResponse(BaseModel):
    intent: Intent
    message: str
    reasoning: list[str] = Field(default_factory=list)
    action: dict[str, Any] | None = None
    pipeline: list[StepResult] | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> "CompletionResponse":
        if self.intent == "pipeline":
            if self.action is not None:
                raise ValueError("pipeline results never carry a top-level action")
            if self.pipeline is None:
                self.pipeline = []
        elif self.pipeline is not None:
            raise ValueError(f"{self.intent} results never carry a pipeline")
        return self

    def to_wire(self) -> dict[str, Any]:
        data = self.model_dump()
        if data.get("pipeline") is None:
            data.pop("pipeline", None)
        return data


class QueryRequest(BaseModel):
    query: str = Field(min_length=1)
    actions: Any = None
    state: dict[str, Any] | None = None
    conversations: str | None = None

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Query is required")
        return value

    @field_validator("actions")
    @classmethod
    def _actions_form_a_catalog(cls, value: Any) -> Any:
        if value is None:
            return None
        try:
            return Catalog.parse(value)
        except ValidationError as exc:
            error = exc.errors()[0]
            where = ".".join(str(part) for part in error.get("loc", ()))
            raise ValueError(f"invalid action entry: {where + ': ' if where else ''}{error.get('msg')}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid action catalog: {exc}") from exc
