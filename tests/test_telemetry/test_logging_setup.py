from __future__ import annotations

import json
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from pcr_history.telemetry.logging_setup import JsonFormatter, configure_logging


def test_json_formatter_should_include_extra_fields() -> None:
    record = logging.LogRecord("pcr_history.store", logging.WARNING, __file__, 10, "Recovered %s", ("backup",), None)
    record.event = "corruption_recovered"
    record.unserializable = object()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "Recovered backup"
    assert payload["level"] == "WARNING"
    assert payload["name"] == "pcr_history.store"
    assert payload["event"] == "corruption_recovered"
    assert "unserializable" not in payload
    assert "lineno" not in payload
    assert payload["timestamp"].endswith("Z")


def test_configure_logging_should_write_json_lines(tmp_path) -> None:
    logger = configure_logging(log_dir=tmp_path / "logs", level="info")
    logger.getChild("store").info("Stored PCR snapshot", extra={"symbol": "NIFTY"})
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "logs" / "pcr_current.jsonl").read_text(encoding="utf-8").strip().splitlines()
    entry = json.loads(lines[-1])
    assert entry["message"] == "Stored PCR snapshot"
    assert entry["symbol"] == "NIFTY"
    assert entry["name"] == "pcr_history.store"
    assert logger.propagate is False


def test_json_formatter_should_stamp_milliseconds_in_utc() -> None:
    record = logging.LogRecord("pcr_history", logging.INFO, __file__, 1, "tick", None, None)
    record.created = 1704688200.1234567

    payload = json.loads(JsonFormatter().format(record))

    assert payload["timestamp"] == "2024-01-08T04:30:00.123Z"


def test_configure_logging_should_honor_file_name_and_rotation(tmp_path) -> None:
    logger = configure_logging(log_dir=tmp_path / "logs", log_file="pcr.jsonl", backup_days=3)

    file_handler = next(h for h in logger.handlers if isinstance(h, TimedRotatingFileHandler))
    stream_handler = next(h for h in logger.handlers if not isinstance(h, TimedRotatingFileHandler))
    assert Path(file_handler.baseFilename).name == "pcr.jsonl"
    assert file_handler.backupCount == 3
    assert stream_handler.stream is sys.stderr


def test_configure_logging_should_replace_previous_handlers(tmp_path) -> None:
    configure_logging(log_dir=tmp_path / "first")
    logger = configure_logging(log_dir=tmp_path / "second")

    assert len(logger.handlers) == 2
    assert all("first" not in getattr(h, "baseFilename", "") for h in logger.handlers)
