from .parsing import ClassificationError, ResponseParseError
from .runtime import Runtime
from .schemas import (
    STEP_INTENTS,
    TOP_LEVEL_INTENTS,
    CompletionResponse,
    IntentClassification,
    QueryRequest,
    StepResult,
)

__all__ = [
    "STEP_INTENTS",
    "TOP_LEVEL_INTENTS",
    "ClassificationError",
    "CompletionResponse",
    "IntentClassification",
    "QueryRequest",
    "ResponseParseError",
    "Runtime",
    "StepResult",
]
