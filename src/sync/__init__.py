"""Sync engine — reconcile local records with the remote store."""

from .ledger import ConflictLedger
from .reconciler import MergeResult, Reconciler, merge
from .remote import RemoteStoreClient
from .scheduler import SyncOutcome, SyncScheduler, SyncState
from .sink import LoggingSink, PresentationSink, SyncStatus

__all__ = [
    "ConflictLedger",
    "MergeResult",
    "Reconciler",
    "merge",
    "RemoteStoreClient",
    "SyncOutcome",
    "SyncScheduler",
    "SyncState",
    "LoggingSink",
    "PresentationSink",
    "SyncStatus",
]
