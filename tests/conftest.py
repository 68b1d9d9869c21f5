from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable

import pytest
from zoneinfo import ZoneInfo

from pcr_history.analytics import IntervalAggregator
from pcr_history.market import MarketCalendar, SentimentClassifier
from pcr_history.storage import SnapshotStore

# 2024-01-08 is a Monday.
MONDAY_MORNING = datetime(2024, 1, 8, 10, 0, tzinfo=ZoneInfo("Asia/Kolkata"))


class FakeClock:
    """Controllable clock injected into the store and the aggregator."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, instant: datetime) -> None:
        self.current = instant

    def advance(self, **delta: float) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(MONDAY_MORNING)


@pytest.fixture
def calendar() -> MarketCalendar:
    return MarketCalendar()


@pytest.fixture
def store_factory(tmp_path: Path, calendar: MarketCalendar, clock: FakeClock) -> Callable[..., SnapshotStore]:
    def _factory(**overrides: object) -> SnapshotStore:
        params: dict[str, object] = {"calendar": calendar, "clock": clock}
        params.update(overrides)
        data_dir = params.pop("data_dir", tmp_path / "data")
        return SnapshotStore(data_dir, **params)  # type: ignore[arg-type]

    return _factory


@pytest.fixture
def store(store_factory: Callable[..., SnapshotStore]) -> SnapshotStore:
    return store_factory()


@pytest.fixture
def aggregator(store: SnapshotStore, calendar: MarketCalendar, clock: FakeClock) -> IntervalAggregator:
    return IntervalAggregator(store, calendar=calendar, classifier=SentimentClassifier(), clock=clock)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("pcr_history")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
