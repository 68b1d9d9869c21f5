"""Durable JSON store for PCR snapshots.

The whole history lives in one document, ``pcr_snapshots.json``, that is
replaced atomically on every mutation:

1. the current primary is copied to ``pcr_snapshots.backup.json``;
2. the new document is written and fsynced to ``pcr_snapshots.json.tmp``;
3. the temp file is renamed over the primary with :func:`os.replace`.

A reader therefore sees either the previous or the next document, never a
partial one. On load a corrupt primary falls back to the backup, and a corrupt
backup falls back to an empty document; both cases are logged, not raised.
"""
from __future__ import annotations

import json
import logging
import os
import shutil
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping

from pcr_history.config.models import StorageConfig
from pcr_history.core.errors import PersistenceError, ValidationError
from pcr_history.core.time_utils import now_utc, to_epoch_ms, truncate_to_ms
from pcr_history.core.types import Clock, Symbol
from pcr_history.market.calendar import MarketCalendar

from .models import Snapshot, StoreStats, SymbolCount

DATA_FILE_NAME = "pcr_snapshots.json"
BACKUP_FILE_NAME = "pcr_snapshots.backup.json"
TEMP_SUFFIX = ".tmp"


@dataclass(slots=True)
class StoreDocument:
    """In-memory form of the persisted ``{"snapshots": [...]}`` document."""

    snapshots: List[Snapshot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"snapshots": [snapshot.to_dict() for snapshot in self.snapshots]}


class _UnreadableDocument(Exception):
    """Internal signal that a document file could not be turned into a StoreDocument."""


class SnapshotStore:
    """File-based store for the complete snapshot history.

    Mutating calls (:meth:`append`, :meth:`clear`) hold a per-instance lock for
    the whole load/mutate/write sequence; two stores pointed at the same
    directory do not coordinate and must not be used as concurrent writers.
    """

    def __init__(
        self,
        data_dir: Path,
        *,
        retention_hours: float = 24,
        calendar: MarketCalendar | None = None,
        clock: Clock = now_utc,
        logger: logging.Logger | None = None,
    ) -> None:
        if retention_hours <= 0:
            raise ValueError("retention_hours must be positive")
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.data_path = self.data_dir / DATA_FILE_NAME
        self.backup_path = self.data_dir / BACKUP_FILE_NAME
        self.temp_path = self.data_dir / (DATA_FILE_NAME + TEMP_SUFFIX)
        self.retention = timedelta(hours=retention_hours)
        self._calendar = calendar or MarketCalendar()
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._write_lock = threading.RLock()
        if not self.data_path.exists() and not self.backup_path.exists():
            self._write_document(StoreDocument())

    @classmethod
    def from_config(
        cls,
        config: StorageConfig,
        *,
        calendar: MarketCalendar | None = None,
        clock: Clock = now_utc,
        logger: logging.Logger | None = None,
    ) -> "SnapshotStore":
        return cls(
            Path(config.data_dir),
            retention_hours=config.retention_hours,
            calendar=calendar,
            clock=clock,
            logger=logger,
        )

    def now(self) -> datetime:
        """Current instant from the injected clock, in UTC at millisecond precision."""

        return truncate_to_ms(self._clock()).astimezone(timezone.utc)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def append(self, payload: Mapping[str, Any]) -> Snapshot:
        """Validate, timestamp and persist one snapshot; prune expired history.

        Raises :class:`ValidationError` before touching the disk when the
        payload is malformed and :class:`PersistenceError` when the write fails.
        """

        now = self.now()
        snapshot = Snapshot.create(payload, recorded_at=now)
        with self._write_lock:
            document, primary_readable = self._load()
            document.snapshots.append(snapshot)
            before = len(document.snapshots)
            document.snapshots = self._prune(document.snapshots, now)
            self._write_document(document, backup=primary_readable)
        pruned = before - len(document.snapshots)
        self._logger.info(
            "Stored PCR snapshot",
            extra={
                "symbol": snapshot.symbol,
                "pcr": snapshot.pcr,
                "total_snapshots": len(document.snapshots),
                "pruned": pruned,
            },
        )
        return snapshot

    def clear(self, symbol: str | None = None) -> int:
        """Remove every snapshot, or only those of ``symbol``; return how many went."""

        with self._write_lock:
            document, primary_readable = self._load()
            before = len(document.snapshots)
            if symbol is None:
                document.snapshots = []
            else:
                document.snapshots = [s for s in document.snapshots if s.symbol != symbol]
            self._write_document(document, backup=primary_readable)
        removed = before - len(document.snapshots)
        self._logger.info("Cleared PCR snapshots", extra={"symbol": symbol, "removed": removed})
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def snapshots_for(self, symbol: str) -> List[Snapshot]:
        """Full history of ``symbol`` in ascending time order."""

        return _sorted([s for s in self.load().snapshots if s.symbol == symbol])

    def latest(self, symbol: str) -> Snapshot | None:
        history = self.snapshots_for(symbol)
        return history[-1] if history else None

    def all_for_window(self, symbol: str, since: datetime) -> List[Snapshot]:
        """Snapshots of ``symbol`` recorded at or after ``since``, oldest first."""

        since_ms = to_epoch_ms(since)
        return [s for s in self.snapshots_for(symbol) if s.timestamp_ms >= since_ms]

    def recent(self, symbol: str, hours_back: float = 24) -> List[Snapshot]:
        if hours_back <= 0:
            raise ValidationError("hours_back must be positive")
        return self.all_for_window(symbol, self.now() - timedelta(hours=hours_back))

    def stats(self) -> StoreStats:
        snapshots = self.load().snapshots
        counts: Dict[Symbol, int] = {}
        for snapshot in snapshots:
            counts[snapshot.symbol] = counts.get(snapshot.symbol, 0) + 1
        market_open = self._calendar.is_open(self.now())
        if not snapshots:
            return StoreStats(total_snapshots=0, market_open=market_open)
        ordered = _sorted(snapshots)
        oldest, newest = ordered[0], ordered[-1]
        span_hours = (newest.timestamp_ms - oldest.timestamp_ms) / 3_600_000
        return StoreStats(
            total_snapshots=len(snapshots),
            symbols=list(counts),
            symbol_counts=[SymbolCount(symbol=symbol, count=count) for symbol, count in counts.items()],
            oldest_snapshot=oldest.timestamp,
            newest_snapshot=newest.timestamp,
            data_span_hours=round(span_hours, 2),
            market_open=market_open,
        )

    # ------------------------------------------------------------------
    # Load / recovery
    # ------------------------------------------------------------------
    def load(self) -> StoreDocument:
        """Read the primary document, falling back to the backup, then to empty."""

        document, _ = self._load()
        return document

    def _load(self) -> tuple[StoreDocument, bool]:
        """Like :meth:`load`, also reporting whether the primary itself was readable."""

        try:
            return self._read_document(self.data_path), True
        except _UnreadableDocument as primary_exc:
            primary_error = str(primary_exc)

        try:
            document = self._read_document(self.backup_path)
        except _UnreadableDocument as backup_exc:
            self._logger.warning(
                "No readable snapshot document, starting from an empty history",
                extra={
                    "event": "corruption_recovered",
                    "source": "empty",
                    "primary_error": primary_error,
                    "backup_error": str(backup_exc),
                },
            )
            return StoreDocument(), False

        self._logger.warning(
            "Primary snapshot document unreadable, loaded backup",
            extra={
                "event": "corruption_recovered",
                "source": "backup",
                "primary_error": primary_error,
                "snapshots": len(document.snapshots),
            },
        )
        return document, False

    def _read_document(self, path: Path) -> StoreDocument:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise _UnreadableDocument(f"{path.name} does not exist") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise _UnreadableDocument(f"Failed to read {path.name}: {exc}") from exc
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise _UnreadableDocument(f"Invalid JSON in {path.name}: {exc}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("snapshots"), list):
            raise _UnreadableDocument(f"{path.name} is not a snapshot document")

        snapshots: List[Snapshot] = []
        for index, entry in enumerate(payload["snapshots"]):
            if not isinstance(entry, Mapping):
                self._logger.warning("Skipping non-object snapshot entry", extra={"file": path.name, "index": index})
                continue
            try:
                snapshots.append(Snapshot.from_dict(entry))
            except ValidationError as exc:
                self._logger.warning(
                    "Skipping malformed snapshot entry",
                    extra={"file": path.name, "index": index, "error": str(exc)},
                )
        return StoreDocument(snapshots=snapshots)

    # ------------------------------------------------------------------
    # Atomic write
    # ------------------------------------------------------------------
    def _write_document(self, document: StoreDocument, *, backup: bool = True) -> None:
        with self._write_lock:
            if backup:
                self._backup_primary()
            try:
                with self.temp_path.open("w", encoding="utf-8") as handle:
                    json.dump(document.to_dict(), handle, indent=2, ensure_ascii=False, allow_nan=False)
                    handle.flush()
                    os.fsync(handle.fileno())
                self._swap_into_place()
            except (OSError, TypeError, ValueError) as exc:
                self._discard_temp()
                raise PersistenceError(f"Failed to write {self.data_path.name}: {exc}") from exc

    def _swap_into_place(self) -> None:
        os.replace(self.temp_path, self.data_path)

    def _backup_primary(self) -> None:
        if not self.data_path.exists():
            return
        try:
            shutil.copyfile(self.data_path, self.backup_path)
        except OSError as exc:
            self._logger.warning("Failed to back up snapshot document", extra={"error": str(exc)})

    def _discard_temp(self) -> None:
        try:
            self.temp_path.unlink(missing_ok=True)
        except OSError as exc:  # pragma: no cover - cleanup failure on top of a write failure
            self._logger.error("Failed to remove temp snapshot file", extra={"error": str(exc)})

    def _prune(self, snapshots: List[Snapshot], now: datetime) -> List[Snapshot]:
        cutoff_ms = to_epoch_ms(now - self.retention)
        return [s for s in snapshots if s.timestamp_ms >= cutoff_ms]


def _sorted(snapshots: List[Snapshot]) -> List[Snapshot]:
    # stable: equal timestamps keep append order
    return sorted(snapshots, key=lambda snapshot: snapshot.timestamp_ms)


__all__ = ["SnapshotStore", "StoreDocument", "DATA_FILE_NAME", "BACKUP_FILE_NAME"]
