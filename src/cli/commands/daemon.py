"""Daemon CLI commands — one-shot sync and the periodic scheduler."""

import sys
import time

import click
from rich.console import Console

from cli.utils import get_components
from observability import log_sync_summary
from sync.sink import SyncStatus

console = Console()


@click.command("sync")
def sync_now():
    """Run one sync cycle against the remote store."""
    c = get_components()
    scheduler = c["scheduler"]
    try:
        with console.status("Syncing..."):
            outcome = scheduler.run_sync()
    finally:
        scheduler.stop()
        c["remote"].close()

    if scheduler.conflicts_pending:
        console.print(
            f"{len(scheduler.pending())} conflict(s) pending; "
            "see [bold]quotesync conflicts list[/]"
        )
    if outcome.status == SyncStatus.FAILED:
        sys.exit(1)


@click.command()
@click.option("--interval", type=float, default=None, help="Seconds between syncs")
def daemon(interval: float | None):
    """Sync periodically until interrupted."""
    c = get_components()
    scheduler = c["scheduler"]
    if interval:
        scheduler.interval_seconds = interval

    scheduler.start()
    scheduler.request_sync()
    console.print(f"[green]Started[/] syncing every {scheduler.interval_seconds:g}s")
    console.print("Press Ctrl+C to stop")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        scheduler.stop()
        c["remote"].close()
        log_sync_summary()
        console.print("\n[yellow]Stopped[/]")
