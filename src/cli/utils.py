"""Shared CLI utilities."""

import sys

import structlog
from rich.console import Console

from errors import StorageUnavailable
from sync.sink import PresentationSink, SyncStatus

console = Console()
logger = structlog.get_logger()

_STATUS_STYLE = {
    SyncStatus.SYNCED: "green",
    SyncStatus.CONFLICTS: "yellow",
    SyncStatus.PARTIAL: "yellow",
    SyncStatus.FAILED: "red",
    SyncStatus.SKIPPED: "dim",
}


class ConsoleSink(PresentationSink):
    """Prints sync outcomes to the terminal."""

    def __init__(self, out: Console | None = None):
        self.console = out or console

    def notify(self, status: SyncStatus, detail: str = "") -> None:
        style = _STATUS_STYLE.get(status, "white")
        self.console.print(f"[{style}]{status.value.capitalize()}[/] {detail}".rstrip())


def get_components(sink: PresentationSink | None = None):
    """Initialize config, store, remote client and scheduler.

    Args:
        sink: Presentation sink for sync outcomes (defaults to the console)
    """
    from cli.config import load_config_model
    from records.store import LocalStore
    from sync.remote import RemoteStoreClient
    from sync.scheduler import SyncScheduler

    config = load_config_model()

    remote = RemoteStoreClient(
        config.remote.base_url,
        timeout=config.remote.timeout,
        token=config.remote.token,
        max_attempts=config.retry.max_attempts,
        min_wait=config.retry.min_wait,
        max_wait=config.retry.max_wait,
    )
    try:
        store = LocalStore(config.paths.db_path)
        scheduler = SyncScheduler(
            store,
            remote,
            sink=sink or ConsoleSink(),
            interval_seconds=config.sync.interval_seconds,
            timeout=config.sync.operation_timeout,
            lock_timeout=config.sync.lock_timeout,
            fetch_limit=config.remote.fetch_limit,
        )
    except StorageUnavailable as e:
        # Defaults must not be written over an unreadable store
        remote.close()
        console.print(f"[red]Local store unavailable:[/] {e}")
        sys.exit(1)

    return {
        "config": config,
        "store": store,
        "remote": remote,
        "scheduler": scheduler,
    }
