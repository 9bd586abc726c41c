"""Synchronization components for keeping a client window up to date."""

from windowsync.sync.key_registry import KeyRegistry
from windowsync.sync.models import EngineState, InFlightBatch, SyncStatus
from windowsync.sync.sync_engine import SyncEngine
from windowsync.sync.update_batch import UpdateBatchBuilder

__all__ = [
    "EngineState",
    "InFlightBatch",
    "KeyRegistry",
    "SyncEngine",
    "SyncStatus",
    "UpdateBatchBuilder",
]
