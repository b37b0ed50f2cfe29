from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .json_formatter import DEFAULT_MAX_FIELD_CHARS, JSONFormatter

LOGGER_NAME = "statepilot"
_MARKER = "_statepilot_handler"
# chatty per-request loggers from the HTTP stack
_NOISY_LOGGERS = ("httpx", "httpcore")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().casefold() == "on"


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _level() -> int:
    if _flag("STATEPILOT_DEBUG", "off"):
        return logging.DEBUG
    name = os.getenv("STATEPILOT_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _owned(logger: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in logger.handlers if getattr(handler, _MARKER, False)]


def _mark(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.setFormatter(formatter)
    setattr(handler, _MARKER, True)
    return handler


def configure_logging(state_dir: Path) -> logging.Logger:
    """Attach JSON handlers to the ``statepilot`` logger.

    Safe to call repeatedly: handlers are added once per destination and
    only the level is refreshed on later calls.
    """
    logger = logging.getLogger(LOGGER_NAME)
    level = _level()
    logger.setLevel(level)
    logger.propagate = False
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)

    formatter = JSONFormatter(max_field_chars=_int_env("STATEPILOT_LOG_FIELD_MAX_CHARS", DEFAULT_MAX_FIELD_CHARS))
    owned = _owned(logger)

    if not any(type(handler) is logging.StreamHandler for handler in owned):
        logger.addHandler(_mark(logging.StreamHandler(stream=sys.stdout), formatter))

    if not _flag("STATEPILOT_LOG_TO_FILE", "on"):
        return logger

    log_dir = Path(os.getenv("STATEPILOT_LOG_DIR") or (state_dir / "logs")).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "statepilot.log"
    if any(isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == log_path for handler in owned):
        return logger

    file_handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=_int_env("STATEPILOT_LOG_MAX_BYTES", 5_000_000),
        backupCount=_int_env("STATEPILOT_LOG_BACKUP_COUNT", 5),
        encoding="utf-8",
    )
    logger.addHandler(_mark(file_handler, formatter))
    return logger
