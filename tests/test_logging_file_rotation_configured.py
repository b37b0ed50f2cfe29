from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from statepilot.core.logging.setup import configure_logging


def test_file_rotation_configured(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("STATEPILOT_LOG_TO_FILE", "on")
    monkeypatch.setenv("STATEPILOT_LOG_MAX_BYTES", "1234")
    monkeypatch.setenv("STATEPILOT_LOG_BACKUP_COUNT", "2")

    logger = logging.getLogger("statepilot")
    logger.handlers = []
    configure_logging(tmp_path)

    file_handlers = [handler for handler in logger.handlers if isinstance(handler, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == 1234
    assert file_handlers[0].backupCount == 2
    assert (tmp_path / "logs").is_dir()

    for handler in file_handlers:
        handler.close()
    logger.handlers = []
