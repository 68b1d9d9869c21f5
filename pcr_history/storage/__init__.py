"""Durable snapshot storage package."""

from .models import Snapshot, StoreStats, SymbolCount
from .snapshot_store import SnapshotStore, StoreDocument

__all__ = ["Snapshot", "SnapshotStore", "StoreDocument", "StoreStats", "SymbolCount"]
