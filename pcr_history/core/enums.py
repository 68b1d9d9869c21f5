"""Enumerations shared across the storage and analytics layers."""
from __future__ import annotations

from enum import Enum


class Sentiment(str, Enum):
    """Market sentiment label derived from a put-call ratio."""

    BUYING = "Buying"
    NEUTRAL = "Neutral"
    SELLING = "Selling"
    NO_DATA = "No Data"


class Trend(str, Enum):
    """Direction of the PCR between the first and last sample of a window."""

    RISING = "Rising"
    FALLING = "Falling"
    STABLE = "Stable"
    NO_DATA = "No Data"


class QueryMode(str, Enum):
    """How the reference instant of a query was chosen."""

    LIVE = "live"  # market open, windows end at the wall clock
    HISTORICAL = "historical"  # market closed, windows end at the newest snapshot
