"""Configuration loading and validation package."""

from .loader import load_app_config
from .models import (
    AggregationConfig,
    AppConfig,
    MarketHoursConfig,
    SentimentConfig,
    StorageConfig,
    TelemetryConfig,
)

__all__ = [
    "AggregationConfig",
    "AppConfig",
    "MarketHoursConfig",
    "SentimentConfig",
    "StorageConfig",
    "TelemetryConfig",
    "load_app_config",
]
