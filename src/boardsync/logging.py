"""Structured JSON logging for boardsync.

Writes JSONL to .boardsync/boardsync.log with rotation (5MB, 3 backups).
Engine modules attach ``issue_id``, ``action``, ``duration_ms`` and
``error`` through ``extra=``; the formatter lifts them into top-level keys.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from boardsync.core import LOG_FILENAME

PACKAGE_LOGGER = "boardsync"

_setup_lock = threading.Lock()
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3
_EXTRA_KEYS = ("issue_id", "action", "duration_ms", "error")


class _JsonFormatter(logging.Formatter):
    """One JSON object per line; timestamps are UTC with millisecond precision."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds")
        entry: dict[str, Any] = {
            "ts": ts,
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update({key: getattr(record, key) for key in _EXTRA_KEYS if hasattr(record, key)})
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, default=str)


def _file_handlers(logger: logging.Logger) -> list[RotatingFileHandler]:
    return [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]


def setup_logging(boardsync_dir: Path, level: int = logging.INFO) -> logging.Logger:
    """Send the package logger to .boardsync/boardsync.log.

    Returns the package logger. Calling again with the same directory is a
    no-op; a different directory replaces the previous file handler.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    log_path = os.path.abspath(str(boardsync_dir / LOG_FILENAME))

    with _setup_lock:
        existing = _file_handlers(logger)
        if any(h.baseFilename == log_path for h in existing):
            return logger
        for stale in existing:
            logger.removeHandler(stale)
            stale.close()

        handler = RotatingFileHandler(log_path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8")
        handler.setFormatter(_JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger
