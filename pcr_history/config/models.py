"""Typed configuration models for the PCR history service.

The config subsystem relies on pydantic to validate the YAML file and to hand
strongly-typed objects to the store, the market clock and the aggregator.
Every section has defaults so an empty file yields a working setup.
"""
from __future__ import annotations

from datetime import date, time
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, field_validator, model_validator


class StorageConfig(BaseModel):
    """Where the snapshot document lives and how long snapshots are kept."""

    data_dir: str = Field("data")
    retention_hours: PositiveFloat = Field(24, description="Snapshots older than this are pruned on append")


class MarketHoursConfig(BaseModel):
    """Weekly trading session of the exchange.

    Defaults describe the NSE cash/derivatives session: Monday to Friday,
    09:15 to 15:30 India Standard Time.
    """

    timezone: str = Field("Asia/Kolkata")
    open_time: time = Field(time(9, 15))
    close_time: time = Field(time(15, 30))
    trading_days: List[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])
    holidays: List[date] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("trading_days")
    @classmethod
    def _check_trading_days(cls, value: List[int]) -> List[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("trading_days must contain weekday numbers 0 (Mon) to 6 (Sun)")
        return sorted(set(value))

    @model_validator(mode="after")
    def _check_session_bounds(self) -> "MarketHoursConfig":
        if self.close_time <= self.open_time:
            raise ValueError("close_time must be after open_time")
        return self


class AggregationConfig(BaseModel):
    """Look-back windows and trend sensitivity of historical queries."""

    default_windows: List[PositiveInt] = Field(default_factory=lambda: [1, 3, 5, 15, 30], min_length=1)
    trend_threshold: float = Field(0.01, ge=0)


class SentimentConfig(BaseModel):
    """PCR thresholds separating Buying / Neutral / Selling."""

    buying_below: float = Field(0.8, gt=0)
    selling_above: float = Field(1.2, gt=0)

    @model_validator(mode="after")
    def _check_order(self) -> "SentimentConfig":
        if self.buying_below > self.selling_above:
            raise ValueError("buying_below must not exceed selling_above")
        return self


class TelemetryConfig(BaseModel):
    """Where JSON logs go, how verbose they are and how many days are kept."""

    log_level: str = Field("INFO")
    log_dir: str = Field("data/logs")
    log_file: str = Field("pcr_current.jsonl", min_length=1)
    backup_days: PositiveInt = Field(14)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


class AppConfig(BaseModel):
    """Runtime config composed of all sections of ``pcr.yml``."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    market: MarketHoursConfig = Field(default_factory=MarketHoursConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    sentiment: SentimentConfig = Field(default_factory=SentimentConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    model_config = ConfigDict(frozen=True)
