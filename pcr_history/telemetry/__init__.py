"""Telemetry and logging subsystem package."""
from .logging_setup import LOG_FILE_NAME, JsonFormatter, configure_logging

__all__ = ["LOG_FILE_NAME", "JsonFormatter", "configure_logging"]
