"""Fetch, transform and merge of the CoinGecko markets snapshot."""

from coin_sync.sync.engine import CycleFailure, CycleOutcome, CycleSkipped, CycleSuccess, SyncEngine
from coin_sync.sync.scheduler import SyncScheduler
from coin_sync.sync.service import SyncService

__all__ = [
    "CycleFailure",
    "CycleOutcome",
    "CycleSkipped",
    "CycleSuccess",
    "SyncEngine",
    "SyncScheduler",
    "SyncService",
]
