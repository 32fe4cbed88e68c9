"""Conflict CLI commands — list and resolve pending sync conflicts."""

import sys

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from errors import SyncInProgress, UnknownConflict
from records.models import Choice

console = Console()


@click.group()
def conflicts():
    """Review conflicts found during sync."""
    pass


@conflicts.command("list")
def conflicts_list():
    """Show pending conflicts; the remote side is currently applied."""
    c = get_components()
    pending = c["scheduler"].pending()
    if not pending:
        console.print("No pending conflicts.")
        return

    table = Table(title="Pending conflicts")
    table.add_column("#", justify="right")
    table.add_column("Record", style="dim", width=8)
    table.add_column("Local")
    table.add_column("Remote (applied)")
    table.add_column("Detected", style="dim")

    for i, conflict in enumerate(pending):
        local, remote = conflict.local, conflict.remote
        table.add_row(
            str(i),
            conflict.record_id[:8],
            f"{local.text[:40]} [{local.category}] v{local.version}",
            f"{remote.text[:40]} [{remote.category}] v{remote.version}",
            conflict.detected_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@conflicts.command("resolve")
@click.argument("index", type=int)
@click.argument("choice", type=click.Choice([c.value for c in Choice]))
@click.option("--no-sync", is_flag=True, help="Do not push the resolution right away")
def conflicts_resolve(index: int, choice: str, no_sync: bool):
    """Keep the LOCAL or REMOTE side of conflict INDEX."""
    c = get_components()
    scheduler = c["scheduler"]
    try:
        record = scheduler.resolve_conflict(index, choice)
    except (UnknownConflict, SyncInProgress) as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    console.print(
        f'[green]Resolved[/] {record.id[:8]} → "{record.text}" — {record.category} (v{record.version})'
    )
    if scheduler.sync_requested and not no_sync:
        scheduler.run_sync()
