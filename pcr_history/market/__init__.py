"""Market clock and sentiment labelling."""

from .calendar import MarketCalendar, MarketStatus
from .sentiment import SentimentClassifier

__all__ = ["MarketCalendar", "MarketStatus", "SentimentClassifier"]
