from .builder import (
    JSON_FORMAT_MESSAGE,
    STAGES,
    SYSTEM_PROMPT,
    PromptError,
    PromptParams,
    generate_prompt,
)

__all__ = [
    "JSON_FORMAT_MESSAGE",
    "STAGES",
    "SYSTEM_PROMPT",
    "PromptError",
    "PromptParams",
    "generate_prompt",
]
