from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
query_id_var: ContextVar[str | None] = ContextVar("query_id", default=None)
step_index_var: ContextVar[str | None] = ContextVar("step_index", default=None)
effect_id_var: ContextVar[str | None] = ContextVar("effect_id", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "correlation_id": correlation_id_var,
    "query_id": query_id_var,
    "step_index": step_index_var,
    "effect_id": effect_id_var,
}


def set_context(**kwargs: str | None) -> dict[str, Token[str | None]]:
    tokens: dict[str, Token[str | None]] = {}
    for key, value in kwargs.items():
        var = _CONTEXT_VARS.get(key)
        if var is None:
            continue
        tokens[key] = var.set(value)
    return tokens


def reset_context(tokens: dict[str, Token[str | None]]) -> None:
    for key, token in tokens.items():
        var = _CONTEXT_VARS.get(key)
        if var is not None:
            var.reset(token)


@contextmanager
def log_context(
    correlation_id: str | None = None,
    query_id: str | None = None,
    step_index: str | None = None,
    effect_id: str | None = None,
) -> Iterator[None]:
    # Unset arguments keep the value inherited from an enclosing context.
    requested = {
        "correlation_id": correlation_id,
        "query_id": query_id,
        "step_index": step_index,
        "effect_id": effect_id,
    }
    tokens = set_context(**{key: value for key, value in requested.items() if value is not None})
    try:
        yield
    finally:
        reset_context(tokens)


def get_log_context() -> dict[str, str]:
    values = {key: var.get() for key, var in _CONTEXT_VARS.items()}
    return {key: value for key, value in values.items() if value is not None}
