"""JSON logging for the PCR history service.

One JSON object per line, timestamped the same way snapshots are
(UTC, millisecond precision, ``Z`` suffix), so log entries and stored
snapshots can be lined up by plain string comparison.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict

from pcr_history.core.time_utils import isoformat_ms

LOG_FILE_NAME = "pcr_current.jsonl"
PACKAGE_LOGGER = "pcr_history"

# Attributes every LogRecord carries; everything else came in via ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render a record and its JSON-safe ``extra`` fields as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": isoformat_ms(datetime.fromtimestamp(record.created, tz=timezone.utc)),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED_ATTRS or key in payload:
                continue
            try:
                json.dumps({key: value})
            except TypeError:
                continue
            payload[key] = value
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    *,
    log_dir: Path,
    level: str = "INFO",
    log_file: str = LOG_FILE_NAME,
    backup_days: int = 14,
    logger_name: str = PACKAGE_LOGGER,
) -> Logger:
    """Attach a midnight-rotating JSON file handler and a stderr handler.

    Module loggers (``pcr_history.storage.snapshot_store`` and friends) are
    children of ``logger_name`` and inherit both handlers. Calling this again
    replaces the handlers of the previous call. stdout stays reserved for the
    command output.
    """

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / log_file
    formatter = JsonFormatter()

    file_handler = TimedRotatingFileHandler(log_path, when="midnight", backupCount=backup_days, encoding="utf-8")
    file_handler.setFormatter(formatter)
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level.upper())
    for existing in list(logger.handlers):
        existing.close()
    logger.handlers.clear()
    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)
    logger.propagate = False
    logger.debug("JSON logging configured", extra={"log_file": str(log_path), "backup_days": backup_days})
    return logger


__all__ = ["configure_logging", "JsonFormatter", "LOG_FILE_NAME", "PACKAGE_LOGGER"]
