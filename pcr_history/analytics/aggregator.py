"""Multi-window PCR statistics measured from a market-aware reference instant.

While the session is open the windows end at the wall clock. Once it closes
the clock stops being meaningful for a sentiment feed, so windows end at the
newest stored snapshot instead; a query at 20:00 then still describes the
last minutes of trading rather than reporting empty windows.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from statistics import fmean
from typing import Iterable, List, Sequence

from pcr_history.config.models import AggregationConfig
from pcr_history.core.enums import QueryMode, Trend
from pcr_history.core.errors import ValidationError
from pcr_history.core.time_utils import now_utc, to_epoch_ms, truncate_to_ms
from pcr_history.core.types import Clock, Symbol
from pcr_history.market.calendar import MarketCalendar
from pcr_history.market.sentiment import SentimentClassifier
from pcr_history.storage.models import Snapshot
from pcr_history.storage.snapshot_store import SnapshotStore

from .models import PCRReport, WindowResult

DEFAULT_WINDOWS: tuple[int, ...] = (1, 3, 5, 15, 30)


class IntervalAggregator:
    """Stateless query engine over a :class:`SnapshotStore`."""

    def __init__(
        self,
        store: SnapshotStore,
        *,
        calendar: MarketCalendar | None = None,
        classifier: SentimentClassifier | None = None,
        clock: Clock = now_utc,
        default_windows: Sequence[int] = DEFAULT_WINDOWS,
        trend_threshold: float = 0.01,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._calendar = calendar or MarketCalendar()
        self._classifier = classifier or SentimentClassifier()
        self._clock = clock
        self._default_windows = _normalize_windows(default_windows)
        self._trend_threshold = trend_threshold
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        config: AggregationConfig,
        store: SnapshotStore,
        *,
        calendar: MarketCalendar | None = None,
        classifier: SentimentClassifier | None = None,
        clock: Clock = now_utc,
    ) -> "IntervalAggregator":
        return cls(
            store,
            calendar=calendar,
            classifier=classifier,
            clock=clock,
            default_windows=config.default_windows,
            trend_threshold=config.trend_threshold,
        )

    def historical_pcr(self, symbol: str, windows: Iterable[int] | None = None) -> PCRReport | None:
        """Return per-window statistics for ``symbol``, or None if it was never collected."""

        requested = self._default_windows if windows is None else _normalize_windows(windows)
        history = self._store.snapshots_for(symbol)
        if not history:
            self._logger.info("No PCR snapshots for symbol", extra={"symbol": symbol})
            return None

        now = truncate_to_ms(self._clock())
        market_open = self._calendar.is_open(now)
        if market_open:
            mode, reference = QueryMode.LIVE, now
        else:
            mode, reference = QueryMode.HISTORICAL, history[-1].recorded_at

        intervals = {}
        for minutes in requested:
            result = self._window(history, reference, minutes)
            intervals[result.label] = result

        self._logger.debug(
            "Computed historical PCR",
            extra={"symbol": symbol, "mode": mode.value, "windows": list(requested), "total": len(history)},
        )
        return PCRReport(
            symbol=Symbol(symbol),
            generated_at=now,
            reference_time=reference,
            mode=mode,
            market_open=market_open,
            total_snapshots=len(history),
            data_from=history[0].timestamp,
            data_to=history[-1].timestamp,
            intervals=intervals,
        )

    def _window(self, history: Sequence[Snapshot], reference: datetime, minutes: int) -> WindowResult:
        reference_ms = to_epoch_ms(reference)
        cutoff_ms = to_epoch_ms(reference - timedelta(minutes=minutes))
        selected = [s for s in history if cutoff_ms <= s.timestamp_ms <= reference_ms]
        if not selected:
            return WindowResult.empty(minutes)

        average = fmean(s.pcr for s in selected)
        first, last = selected[0], selected[-1]
        change = last.pcr - first.pcr
        change_percent = (change / first.pcr) * 100 if first.pcr != 0 else 0.0
        return WindowResult(
            window_minutes=minutes,
            pcr=average,
            sentiment=self._classifier.classify(average),
            trend=self._trend(change),
            change=change,
            change_percent=change_percent,
            data_points=len(selected),
            oldest=first.timestamp,
            newest=last.timestamp,
        )

    def _trend(self, change: float) -> Trend:
        if change > self._trend_threshold:
            return Trend.RISING
        if change < -self._trend_threshold:
            return Trend.FALLING
        return Trend.STABLE


def _normalize_windows(windows: Iterable[int]) -> tuple[int, ...]:
    """Validate window sizes and drop duplicates, keeping the first occurrence."""

    normalized: List[int] = []
    for value in windows:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(f"Window sizes must be positive integers (minutes), got {value!r}")
        if value not in normalized:
            normalized.append(value)
    if not normalized:
        raise ValidationError("At least one window size is required")
    return tuple(normalized)


__all__ = ["DEFAULT_WINDOWS", "IntervalAggregator"]
