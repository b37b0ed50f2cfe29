from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any

from .context import get_log_context
from .redact import redact_string

DEFAULT_MAX_FIELD_CHARS = 2000


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    String values in ``extra_fields`` are redacted and clipped to
    ``max_field_chars``; debug records may carry whole prompts and raw
    backend answers.
    """

    def __init__(self, max_field_chars: int = DEFAULT_MAX_FIELD_CHARS) -> None:
        super().__init__()
        self.max_field_chars = max(16, max_field_chars)

    def _clean(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        value = redact_string(value)
        if len(value) > self.max_field_chars:
            return f"{value[: self.max_field_chars]}...[{len(value) - self.max_field_chars} more chars]"
        return value

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts_iso_utc": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(get_log_context())

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update({key: self._clean(value) for key, value in extra_fields.items()})

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            payload["exc_type"] = exc_type.__name__ if exc_type else "Exception"
            payload["exc_msg"] = redact_string(str(exc_value)) if exc_value else ""
            payload["stack"] = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
