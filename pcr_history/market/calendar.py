"""Exchange trading-session clock.

The calendar is a pure function of the instant passed in: no I/O, no cached
"now". Queries and the store ask it whether the session is open so that the
aggregator can decide which reference instant to measure windows from.
"""
from __future__ import annotations

import calendar as _weekdays
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable

from zoneinfo import ZoneInfo

from pcr_history.config.models import MarketHoursConfig


@dataclass(slots=True, frozen=True)
class MarketStatus:
    """Human-oriented summary of the session state at one instant."""

    is_open: bool
    day_of_week: str
    current_time: str
    market_open: str
    market_close: str
    timezone: str
    last_trading_day: date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_open": self.is_open,
            "day_of_week": self.day_of_week,
            "current_time": self.current_time,
            "market_open": self.market_open,
            "market_close": self.market_close,
            "timezone": self.timezone,
            "last_trading_day": self.last_trading_day.isoformat(),
        }


class MarketCalendar:
    """Weekly session schedule in one fixed exchange timezone.

    Session bounds are compared at minute granularity with both ends
    inclusive, so the entire closing minute still counts as open.
    """

    def __init__(
        self,
        *,
        timezone_name: str = "Asia/Kolkata",
        open_time: time = time(9, 15),
        close_time: time = time(15, 30),
        trading_days: Iterable[int] = (0, 1, 2, 3, 4),
        holidays: Iterable[date] = (),
    ) -> None:
        if close_time <= open_time:
            raise ValueError("close_time must be after open_time")
        self._timezone_name = timezone_name
        self._tz = ZoneInfo(timezone_name)
        self._open_minute = open_time.hour * 60 + open_time.minute
        self._close_minute = close_time.hour * 60 + close_time.minute
        self._trading_days = frozenset(trading_days)
        self._holidays = frozenset(holidays)
        if not self._trading_days:
            raise ValueError("At least one trading day is required")

    @classmethod
    def from_config(cls, config: MarketHoursConfig) -> "MarketCalendar":
        return cls(
            timezone_name=config.timezone,
            open_time=config.open_time,
            close_time=config.close_time,
            trading_days=config.trading_days,
            holidays=config.holidays,
        )

    @property
    def timezone(self) -> ZoneInfo:
        return self._tz

    def is_trading_day(self, day: date) -> bool:
        return day.weekday() in self._trading_days and day not in self._holidays

    def is_open(self, instant: datetime) -> bool:
        """Return True when ``instant`` falls inside a trading session."""

        local = self._localize(instant)
        if not self.is_trading_day(local.date()):
            return False
        minute = local.hour * 60 + local.minute
        return self._open_minute <= minute <= self._close_minute

    def last_trading_day(self, instant: datetime) -> date:
        """Most recent trading date whose session had started by ``instant``."""

        local = self._localize(instant)
        candidate = local.date()
        if local.hour * 60 + local.minute < self._open_minute:
            candidate -= timedelta(days=1)
        # Bounded walk: a full year of holidays would be a config error.
        for _ in range(366):
            if self.is_trading_day(candidate):
                return candidate
            candidate -= timedelta(days=1)
        raise ValueError("No trading day found within the last year")

    def status(self, instant: datetime) -> MarketStatus:
        local = self._localize(instant)
        return MarketStatus(
            is_open=self.is_open(instant),
            day_of_week=_weekdays.day_name[local.weekday()],
            current_time=local.strftime("%H:%M"),
            market_open=_format_minute(self._open_minute),
            market_close=_format_minute(self._close_minute),
            timezone=self._timezone_name,
            last_trading_day=self.last_trading_day(instant),
        )

    def _localize(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            raise ValueError("Datetime must be timezone-aware")
        return instant.astimezone(self._tz)


def _format_minute(minute_of_day: int) -> str:
    return f"{minute_of_day // 60:02d}:{minute_of_day % 60:02d}"


__all__ = ["MarketCalendar", "MarketStatus"]
