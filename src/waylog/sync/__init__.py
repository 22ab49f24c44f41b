"""Transcript to markdown synchronization."""

from waylog.sync.outcome import Failed, Skipped, Synced, SyncOutcome, SyncResult, UpToDate
from waylog.sync.synchronizer import Synchronizer

__all__ = [
    "Failed",
    "Skipped",
    "SyncOutcome",
    "SyncResult",
    "Synced",
    "Synchronizer",
    "UpToDate",
]
