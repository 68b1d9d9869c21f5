"""Snapshot records and store statistics."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping

from pcr_history.core.errors import ValidationError
from pcr_history.core.time_utils import from_epoch_ms, isoformat_ms, parse_iso, to_epoch_ms
from pcr_history.core.types import EpochMillis, Symbol

# Optional producer metadata: wire key -> attribute name.
_NUMERIC_METADATA = {
    "callOI": "call_oi",
    "putOI": "put_oi",
    "callVolume": "call_volume",
    "putVolume": "put_volume",
}
_TEXT_METADATA = {
    "expiry": "expiry",
    "tradingSymbol": "trading_symbol",
    "source": "source",
}


@dataclass(slots=True, frozen=True)
class Snapshot:
    """One timestamped PCR reading for one symbol.

    ``timestamp_ms`` is the value used for every comparison; ``recorded_at``
    is the same instant as an aware UTC datetime.
    """

    symbol: Symbol
    pcr: float
    recorded_at: datetime
    timestamp_ms: EpochMillis
    call_oi: float | None = None
    put_oi: float | None = None
    call_volume: float | None = None
    put_volume: float | None = None
    expiry: str | None = None
    trading_symbol: str | None = None
    source: str | None = None

    @property
    def timestamp(self) -> str:
        return isoformat_ms(self.recorded_at)

    @classmethod
    def create(cls, payload: Mapping[str, Any], recorded_at: datetime) -> "Snapshot":
        """Validate a producer payload and stamp it with ``recorded_at``."""

        if not isinstance(payload, Mapping):
            raise ValidationError("Snapshot payload must be a mapping")
        symbol = _validate_symbol(payload.get("symbol"))
        pcr = _validate_pcr(payload.get("pcr"))
        metadata = _parse_metadata(payload)
        return cls(
            symbol=symbol,
            pcr=pcr,
            recorded_at=recorded_at,
            timestamp_ms=to_epoch_ms(recorded_at),
            **metadata,
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Snapshot":
        """Rebuild a persisted snapshot; raises ValidationError when malformed."""

        symbol = _validate_symbol(payload.get("symbol"))
        pcr = _validate_pcr(payload.get("pcr"))
        raw_ms = payload.get("timestampMs")
        if isinstance(raw_ms, (int, float)) and not isinstance(raw_ms, bool) and math.isfinite(raw_ms):
            timestamp_ms = EpochMillis(int(raw_ms))
            recorded_at = from_epoch_ms(timestamp_ms)
        elif isinstance(payload.get("timestamp"), str):
            try:
                recorded_at = parse_iso(payload["timestamp"])
            except ValueError as exc:
                raise ValidationError(f"Unparseable timestamp: {payload['timestamp']!r}") from exc
            timestamp_ms = to_epoch_ms(recorded_at)
        else:
            raise ValidationError("Snapshot has neither timestampMs nor timestamp")
        return cls(
            symbol=symbol,
            pcr=pcr,
            recorded_at=recorded_at,
            timestamp_ms=timestamp_ms,
            **_parse_metadata(payload),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "symbol": self.symbol,
            "pcr": self.pcr,
            "timestamp": self.timestamp,
            "timestampMs": self.timestamp_ms,
        }
        for wire_key, attr in {**_NUMERIC_METADATA, **_TEXT_METADATA}.items():
            value = getattr(self, attr)
            if value is not None:
                payload[wire_key] = value
        return payload


@dataclass(slots=True)
class SymbolCount:
    symbol: Symbol
    count: int


@dataclass(slots=True)
class StoreStats:
    """Operational summary of the snapshot document."""

    total_snapshots: int
    symbols: List[Symbol] = field(default_factory=list)
    symbol_counts: List[SymbolCount] = field(default_factory=list)
    oldest_snapshot: str | None = None
    newest_snapshot: str | None = None
    data_span_hours: float = 0.0
    market_open: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_snapshots": self.total_snapshots,
            "symbols": list(self.symbols),
            "symbol_counts": [{"symbol": item.symbol, "count": item.count} for item in self.symbol_counts],
            "oldest_snapshot": self.oldest_snapshot,
            "newest_snapshot": self.newest_snapshot,
            "data_span_hours": self.data_span_hours,
            "market_open": self.market_open,
        }


def _validate_symbol(value: Any) -> Symbol:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Snapshot symbol must be a non-empty string, got {value!r}")
    return Symbol(value.strip())


def _validate_pcr(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"Snapshot pcr must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValidationError(f"Snapshot pcr must be finite, got {value!r}")
    return float(value)


def _parse_metadata(payload: Mapping[str, Any]) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {}
    for wire_key, attr in _NUMERIC_METADATA.items():
        value = payload.get(wire_key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
            metadata[attr] = float(value)
    for wire_key, attr in _TEXT_METADATA.items():
        value = payload.get(wire_key)
        if isinstance(value, str):
            metadata[attr] = value
    return metadata


__all__ = ["Snapshot", "StoreStats", "SymbolCount"]
