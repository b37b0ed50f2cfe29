"""Structured JSON logging for the ``statepilot`` logger tree."""

from .context import get_log_context, log_context, reset_context, set_context
from .json_formatter import JSONFormatter
from .redact import redact_string
from .setup import LOGGER_NAME, configure_logging

__all__ = [
    "LOGGER_NAME",
    "JSONFormatter",
    "configure_logging",
    "get_log_context",
    "log_context",
    "redact_string",
    "reset_context",
    "set_context",
]
