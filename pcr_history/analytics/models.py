"""Report models returned by historical PCR queries.

Nothing here is persisted. ``to_dict`` produces plain JSON-ready data with
ratios rounded for display; the dataclass fields keep full precision.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from pcr_history.core.enums import QueryMode, Sentiment, Trend
from pcr_history.core.time_utils import isoformat_ms
from pcr_history.core.types import Symbol


@dataclass(slots=True, frozen=True)
class WindowResult:
    """Statistics of one look-back window."""

    window_minutes: int
    pcr: float | None
    sentiment: Sentiment
    trend: Trend
    change: float | None = None
    change_percent: float | None = None
    data_points: int = 0
    oldest: str | None = None
    newest: str | None = None

    @property
    def label(self) -> str:
        return f"{self.window_minutes}min"

    @classmethod
    def empty(cls, window_minutes: int) -> "WindowResult":
        return cls(
            window_minutes=window_minutes,
            pcr=None,
            sentiment=Sentiment.NO_DATA,
            trend=Trend.NO_DATA,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pcr": None if self.pcr is None else round(self.pcr, 4),
            "sentiment": self.sentiment.value,
            "trend": self.trend.value,
            "change": None if self.change is None else round(self.change, 4),
            "change_percent": None if self.change_percent is None else round(self.change_percent, 2),
            "data_points": self.data_points,
            "oldest": self.oldest,
            "newest": self.newest,
        }


@dataclass(slots=True)
class PCRReport:
    """Per-symbol answer to a multi-window historical query."""

    symbol: Symbol
    generated_at: datetime
    reference_time: datetime
    mode: QueryMode
    market_open: bool
    total_snapshots: int
    data_from: str
    data_to: str
    intervals: Dict[str, WindowResult] = field(default_factory=dict)

    def window(self, minutes: int) -> WindowResult:
        return self.intervals[f"{minutes}min"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "timestamp": isoformat_ms(self.generated_at),
            "reference_time": isoformat_ms(self.reference_time),
            "mode": self.mode.value,
            "market_open": self.market_open,
            "intervals": {label: result.to_dict() for label, result in self.intervals.items()},
            "total_snapshots": self.total_snapshots,
            "data_range": {"from": self.data_from, "to": self.data_to},
        }


__all__ = ["PCRReport", "WindowResult"]
