"""Sync scheduler — owns the record state and drives reconciliation cycles."""

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import structlog
import structlog.contextvars
from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from errors import (
    CorruptData,
    DuplicateRecord,
    InvalidInput,
    NetworkError,
    RemoteError,
    StorageUnavailable,
    SyncInProgress,
)
from observability import metrics
from records.defaults import default_records
from records.models import Choice, Conflict, Record
from records import query
from records.store import LocalStore
from records.transfer import merge_imported, read_import

from .ledger import ConflictLedger
from .reconciler import Reconciler
from .sink import LoggingSink, PresentationSink, SyncStatus

logger = structlog.get_logger().bind(source="scheduler")


class SyncState(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    FAILED = "failed"


@dataclass
class SyncOutcome:
    """Terminal result of one ``run_sync`` call."""

    status: SyncStatus
    detail: str = ""
    records: int = 0
    conflicts: int = 0
    pushed: int = 0


class SyncScheduler:
    """Single owner of the in-memory record set, the local store and the ledger.

    One lock stands for the SYNCING state. ``run_sync`` takes it with a
    non-blocking acquire, so a second request while a cycle is in flight is
    dropped rather than queued. The guarded mutations (add, resolve, import,
    reset) wait up to ``lock_timeout`` for it instead.

    Network calls run on a small worker pool and are bounded by ``timeout``;
    a call that overruns is treated as a failure and its late result is never
    read.

    Other processes (a running daemon and one-shot CLI commands) share the
    store, so state is re-read from it under the lock before each merge and
    each guarded mutation. Construction raises StorageUnavailable when the
    store cannot be read; defaults are only written over a missing or
    malformed payload.
    """

    def __init__(
        self,
        store: LocalStore,
        remote,
        sink: PresentationSink | None = None,
        reconciler: Reconciler | None = None,
        interval_seconds: float = 30.0,
        timeout: float = 15.0,
        lock_timeout: float = 30.0,
        fetch_limit: int | None = None,
    ):
        self.store = store
        self.remote = remote
        self.sink = sink or LoggingSink()
        self.reconciler = reconciler or Reconciler()
        self.interval_seconds = interval_seconds
        self.timeout = timeout
        self.lock_timeout = lock_timeout
        self.fetch_limit = fetch_limit

        self._lock = threading.Lock()
        self._state = SyncState.IDLE
        self._dirty = False
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="quotesync-net")
        self.scheduler = BackgroundScheduler()
        self.sync_requested = False
        self.last_outcome: SyncOutcome | None = None

        self.ledger = ConflictLedger()
        self._records: list[Record] = []
        self._load()

    # --- read access ---

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def conflicts_pending(self) -> bool:
        return len(self.ledger) > 0

    @property
    def dirty(self) -> bool:
        """True when the last save failed and storage lags memory."""
        return self._dirty

    def records(self) -> list[Record]:
        return list(self._records)

    def pending(self) -> list[Conflict]:
        return self.ledger.pending()

    def categories(self) -> list[str]:
        return query.categories(self._records)

    def pick_random(self, category: str | None = None) -> Record | None:
        return query.pick_random(self._records, category)

    # --- sync cycle ---

    def run_sync(self) -> SyncOutcome:
        """Run one fetch → merge → save → push cycle, unless one is in flight."""
        if not self._lock.acquire(blocking=False):
            logger.info("sync.skipped", reason="already syncing")
            metrics.counter("sync_skipped")
            return SyncOutcome(SyncStatus.SKIPPED, "already syncing")

        cycle_id = uuid.uuid4().hex[:8]
        structlog.contextvars.bind_contextvars(sync_cycle=cycle_id)
        try:
            self._state = SyncState.SYNCING
            self.sync_requested = False
            with metrics.timer("sync_duration"):
                outcome = self._cycle()
        finally:
            self._state = SyncState.IDLE
            self._lock.release()
            structlog.contextvars.unbind_contextvars("sync_cycle")

        self.last_outcome = outcome
        metrics.counter(f"sync_{outcome.status.value}")
        self.sink.notify(outcome.status, outcome.detail)
        return outcome

    def _cycle(self) -> SyncOutcome:
        try:
            remote = self._call(self.remote.fetch, self.fetch_limit)
        except RemoteError as e:
            self._state = SyncState.FAILED
            logger.warning("sync.fetch_failed", error=str(e), error_type=type(e).__name__)
            return SyncOutcome(SyncStatus.FAILED, str(e), records=len(self._records))

        self._refresh()
        merged, conflicts = self.reconciler.merge(self._records, remote)
        outgoing = self.reconciler.outgoing(merged, remote)

        self._records = merged
        self.ledger.record(conflicts)
        self._persist()

        pushed = 0
        push_error = None
        if outgoing:
            try:
                accepted = self._call(self.remote.push, outgoing)
            except RemoteError as e:
                push_error = e
                logger.warning(
                    "sync.push_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    outgoing=len(outgoing),
                )
            else:
                pushed = len(accepted)
                if accepted:
                    self._refresh()
                    self._records = self._apply_accepted(self._records, accepted)
                    self._persist()

        logger.info(
            "sync.completed",
            records=len(self._records),
            conflicts=len(conflicts),
            outgoing=len(outgoing),
            pushed=pushed,
        )

        counts = dict(records=len(self._records), conflicts=len(conflicts), pushed=pushed)
        if push_error is not None:
            return SyncOutcome(
                SyncStatus.PARTIAL,
                f"Merged locally; push failed, will retry next cycle: {push_error}",
                **counts,
            )
        if conflicts:
            return SyncOutcome(SyncStatus.CONFLICTS, f"{len(conflicts)} conflict(s) pending", **counts)
        return SyncOutcome(SyncStatus.SYNCED, f"{len(self._records)} record(s) in sync", **counts)

    def _call(self, fn, *args):
        """Run a network call on the worker pool with a bounded wait."""
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=self.timeout)
        except FuturesTimeout as e:
            future.cancel()
            raise NetworkError(
                f"{getattr(fn, '__name__', 'remote call')} timed out after {self.timeout:.1f}s"
            ) from e

    @staticmethod
    def _apply_accepted(records: list[Record], accepted: list[Record]) -> list[Record]:
        by_id = {r.id: r for r in accepted}
        out = []
        for rec in records:
            ack = by_id.get(rec.id)
            if ack is not None and ack.version >= rec.version:
                out.append(ack)
            else:
                out.append(rec)
        return out

    # --- guarded mutations ---

    @contextmanager
    def _mutation(self, operation: str):
        if not self._lock.acquire(timeout=self.lock_timeout):
            raise SyncInProgress(f"Sync still running; {operation} timed out waiting")
        try:
            self._refresh()
            yield
        finally:
            self._lock.release()

    def add_record(self, text: str, category: str) -> Record:
        """Create a new local record.

        Raises:
            InvalidInput: text or category empty after trimming.
            DuplicateRecord: same (text, category) already present.
        """
        text = (text or "").strip()
        category = (category or "").strip()
        if not text or not category:
            raise InvalidInput("Please enter both quote text and a category.")

        with self._mutation("add_record"):
            if query.find_duplicate(self._records, text, category):
                raise DuplicateRecord("This exact quote in the same category already exists.")
            record = Record.create(text, category)
            self._records = [*self._records, record]
            self._persist()

        logger.info("record.added", record_id=record.id, category=category)
        metrics.counter("records_added")
        return record

    def resolve_conflict(self, index: int, choice: Choice | str) -> Record:
        """Override remote-wins for one pending conflict, then request a sync."""
        try:
            choice = Choice(choice)
        except ValueError as e:
            raise InvalidInput(f"Choice must be 'local' or 'remote', got {choice!r}") from e

        with self._mutation("resolve_conflict"):
            self._records, resolved = self.ledger.resolve(index, choice, self._records)
            self._persist()

        metrics.counter("conflicts_resolved")
        self.request_sync()
        return resolved

    def import_records(self, path: str | Path) -> int:
        """Import (text, category) pairs from a JSON file. Returns count added."""
        pairs = read_import(path)
        with self._mutation("import_records"):
            added = merge_imported(self._records, pairs)
            if added:
                self._records = [*self._records, *added]
                self._persist()
        logger.info("records.imported", path=str(path), added=len(added), read=len(pairs))
        return len(added)

    def reset_to_defaults(self) -> list[Record]:
        """Replace the record set with the built-in defaults."""
        with self._mutation("reset_to_defaults"):
            self._records = default_records()
            self.ledger.clear()
            self._persist()
        logger.info("records.reset", count=len(self._records))
        return list(self._records)

    # --- persistence ---

    def _load(self) -> None:
        try:
            records = self.store.load()
        except CorruptData as e:
            logger.warning("store.corrupt_fallback", error=str(e))
            metrics.counter("store_corrupt")
            records = None

        if records is None:
            self._records = default_records()
            self._persist()
            logger.info("store.defaults_loaded", count=len(self._records))
            return
        self._records = records
        self.ledger = ConflictLedger(self.store.load_conflicts())

    def _refresh(self) -> None:
        """Re-read records and conflicts another process may have saved.

        Called with the lock held. Skipped while dirty, since memory is then
        ahead of the store.
        """
        if self._dirty:
            return
        try:
            records = self.store.load()
            conflicts = self.store.load_conflicts()
        except (CorruptData, StorageUnavailable) as e:
            logger.warning("store.refresh_failed", error=str(e))
            return
        if records is not None:
            self._records = records
            self.ledger = ConflictLedger(conflicts)

    def _persist(self) -> None:
        try:
            self.store.save(self._records)
            self.store.save_conflicts(self.ledger.pending())
        except StorageUnavailable as e:
            self._dirty = True
            metrics.counter("store_save_failed")
            logger.warning("store.save_failed", error=str(e))
        else:
            self._dirty = False

    # --- timer ---

    def request_sync(self) -> None:
        """Ask for a sync cycle soon.

        With the timer running this queues a one-off job; otherwise the flag
        tells the caller a cycle is due.
        """
        self.sync_requested = True
        if self.scheduler.running:
            self.scheduler.add_job(self.run_sync, id="sync_now", replace_existing=True)

    def _on_job_error(self, event):
        logger.error(
            "job_error",
            job_id=event.job_id,
            exception=str(event.exception),
            traceback=event.traceback,
        )

    def start(self) -> None:
        """Start periodic syncing every ``interval_seconds``."""
        self.scheduler.add_job(
            self.run_sync,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id="periodic_sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self.scheduler.start()
        logger.info("scheduler.started", interval_seconds=self.interval_seconds)

    def stop(self) -> None:
        """Stop the timer and release the network worker pool."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self._executor.shutdown(wait=False)
        logger.info("scheduler.stopped")
