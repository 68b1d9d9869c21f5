"""Utilities for dealing with timezones and timestamps.

Snapshots are compared by integer epoch milliseconds and displayed as ISO-8601
strings; the helpers below are the single place where those conversions
happen.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from .types import EpochMillis

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def now_utc() -> datetime:
    """Return the current UTC datetime with tzinfo."""

    return datetime.now(timezone.utc)


def to_epoch_ms(dt: datetime) -> EpochMillis:
    """Convert an aware datetime to integer epoch milliseconds."""

    if dt.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware before conversion")
    return EpochMillis((dt - _EPOCH) // _ONE_MS)


def from_epoch_ms(value: int) -> datetime:
    """Convert epoch milliseconds back to an aware UTC datetime."""

    return _EPOCH + timedelta(milliseconds=int(value))


def truncate_to_ms(dt: datetime) -> datetime:
    """Drop sub-millisecond precision so ``dt`` survives an epoch-ms round trip."""

    return dt.replace(microsecond=dt.microsecond - dt.microsecond % 1000)


def isoformat_ms(dt: datetime) -> str:
    """Render ``dt`` as UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""

    utc = dt.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware datetime."""

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
