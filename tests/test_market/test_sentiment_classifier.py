from __future__ import annotations

import pytest

from pcr_history.config.models import SentimentConfig
from pcr_history.core.enums import Sentiment
from pcr_history.market.sentiment import SentimentClassifier


@pytest.mark.parametrize(
    ("pcr", "expected"),
    [
        (0.8, Sentiment.NEUTRAL),
        (0.79999, Sentiment.BUYING),
        (1.2, Sentiment.NEUTRAL),
        (1.20001, Sentiment.SELLING),
        (1.0, Sentiment.NEUTRAL),
        (0, Sentiment.BUYING),
        (3, Sentiment.SELLING),
    ],
)
def test_sentiment_classifier_should_respect_boundaries(pcr: float, expected: Sentiment) -> None:
    assert SentimentClassifier().classify(pcr) is expected


@pytest.mark.parametrize("value", [None, "1.5", "abc", True, float("nan"), [1.3]])
def test_sentiment_classifier_should_default_to_neutral_for_non_numbers(value: object) -> None:
    assert SentimentClassifier().classify(value) is Sentiment.NEUTRAL


def test_sentiment_classifier_should_use_configured_thresholds() -> None:
    classifier = SentimentClassifier.from_config(SentimentConfig(buying_below=0.7, selling_above=1.0))
    assert classifier.classify(0.75) is Sentiment.NEUTRAL
    assert classifier.classify(1.05) is Sentiment.SELLING
    assert classifier.classify(0.65) is Sentiment.BUYING


def test_sentiment_classifier_should_reject_inverted_thresholds() -> None:
    with pytest.raises(ValueError):
        SentimentClassifier(buying_below=1.5, selling_above=1.0)
