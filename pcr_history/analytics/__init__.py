"""Historical PCR analytics package."""

from .aggregator import DEFAULT_WINDOWS, IntervalAggregator
from .models import PCRReport, WindowResult

__all__ = ["DEFAULT_WINDOWS", "IntervalAggregator", "PCRReport", "WindowResult"]
