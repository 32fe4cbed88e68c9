"""Record CLI commands — add, list, categories, random, last, export, import, reset."""

import sys
from pathlib import Path

import click
import structlog
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from errors import DuplicateRecord, InvalidInput, StorageUnavailable
from records.query import ALL_CATEGORIES, filter_by_category
from records.transfer import export_records

console = Console()
logger = structlog.get_logger()

# Preferences kept between invocations
LAST_FILTER = "last_filter"
LAST_QUOTE = "last_quote"


def _recall(store, name: str, default: str | None = None) -> str | None:
    try:
        return store.get_setting(name, default)
    except StorageUnavailable as e:
        logger.warning("cli.setting_unreadable", setting=name, error=str(e))
        return default


def _remember(store, name: str, value: str) -> None:
    try:
        store.set_setting(name, value)
    except StorageUnavailable as e:
        logger.warning("cli.setting_not_saved", setting=name, error=str(e))


@click.command()
@click.argument("text")
@click.argument("category")
def add(text: str, category: str):
    """Add a quote under CATEGORY."""
    c = get_components()
    try:
        record = c["scheduler"].add_record(text, category)
    except (InvalidInput, DuplicateRecord) as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)
    console.print(f'[green]Added:[/] "{record.text}" — {record.category}')


@click.command("list")
@click.option("--category", "-c", default=None, help="Filter by category; remembered, 'all' clears")
def list_records(category: str | None):
    """List quotes, filtered by the given or last used category."""
    c = get_components()
    if category is None:
        category = _recall(c["store"], LAST_FILTER, ALL_CATEGORIES)
    else:
        _remember(c["store"], LAST_FILTER, category)
    records = filter_by_category(c["scheduler"].records(), category)

    if not records:
        console.print("No quotes found for this category.")
        return

    table = Table(title="Quotes")
    table.add_column("ID", style="dim", width=8)
    table.add_column("Category", width=14)
    table.add_column("Quote")
    table.add_column("Ver", width=4, justify="right")
    table.add_column("Synced", width=6)

    for r in records:
        table.add_row(
            r.id[:8],
            r.category,
            r.text[:80],
            str(r.version),
            "yes" if r.remote_id else "no",
        )

    console.print(table)


@click.command("categories")
def list_categories():
    """List the categories in use."""
    c = get_components()
    cats = c["scheduler"].categories()
    if not cats:
        console.print("No categories.")
        return
    for cat in cats:
        console.print(cat)


@click.command()
@click.option("--category", "-c", default=None, help="Draw from this category")
def random(category: str | None):
    """Show a random quote from the given or last used category."""
    c = get_components()
    if category is None:
        remembered = _recall(c["store"], LAST_FILTER, ALL_CATEGORIES)
        category = None if remembered == ALL_CATEGORIES else remembered
    record = c["scheduler"].pick_random(category)
    if record is None:
        console.print("No quotes available.")
        return
    _remember(c["store"], LAST_QUOTE, record.id)
    console.print(f'"{record.text}" — {record.category}')


@click.command()
def last():
    """Show the quote the last `random` displayed."""
    c = get_components()
    record_id = _recall(c["store"], LAST_QUOTE)
    record = next((r for r in c["scheduler"].records() if r.id == record_id), None)
    if record is None:
        console.print("No quote viewed yet.")
        return
    console.print(f'"{record.text}" — {record.category}')


@click.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path), default="quotes.json")
def export_cmd(path: Path):
    """Export all quotes to a JSON file."""
    c = get_components()
    records = c["scheduler"].records()
    out = export_records(records, path)
    console.print(f"Exported {len(records)} quotes to {out}")


@click.command("import")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def import_cmd(path: Path):
    """Import quotes from a JSON array of {text, category} objects."""
    c = get_components()
    try:
        added = c["scheduler"].import_records(path)
    except InvalidInput as e:
        console.print(f"[red]Error importing JSON:[/] {e}")
        sys.exit(1)
    console.print(f"Imported {added} new quotes.")


@click.command()
@click.confirmation_option(
    prompt="Reset saved quotes to the default set? This will overwrite your stored quotes."
)
def reset():
    """Replace stored quotes with the default set."""
    c = get_components()
    records = c["scheduler"].reset_to_defaults()
    console.print(f"Reset to {len(records)} default quotes.")
