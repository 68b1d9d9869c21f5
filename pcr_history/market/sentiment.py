"""Map a put-call ratio onto a Buying / Neutral / Selling label."""
from __future__ import annotations

from typing import Any

from pcr_history.config.models import SentimentConfig
from pcr_history.core.enums import Sentiment


class SentimentClassifier:
    """Threshold classifier for PCR values.

    A ratio above ``selling_above`` means put interest dominates (bearish,
    Selling); below ``buying_below`` call interest dominates (bullish, Buying).
    Anything that is not a real number is labelled Neutral instead of raising.
    """

    def __init__(self, *, buying_below: float = 0.8, selling_above: float = 1.2) -> None:
        if buying_below > selling_above:
            raise ValueError("buying_below must not exceed selling_above")
        self._buying_below = buying_below
        self._selling_above = selling_above

    @classmethod
    def from_config(cls, config: SentimentConfig) -> "SentimentClassifier":
        return cls(buying_below=config.buying_below, selling_above=config.selling_above)

    def classify(self, pcr: Any) -> Sentiment:
        if isinstance(pcr, bool) or not isinstance(pcr, (int, float)):
            return Sentiment.NEUTRAL
        if pcr > self._selling_above:
            return Sentiment.SELLING
        if pcr < self._buying_below:
            return Sentiment.BUYING
        # NaN fails both comparisons and lands here
        return Sentiment.NEUTRAL


__all__ = ["SentimentClassifier"]
