"""CLI command modules."""

from .conflicts import conflicts
from .records import add, export_cmd, import_cmd, last, list_categories, list_records, random, reset
from .daemon import daemon, sync_now

__all__ = [
    "add",
    "list_records",
    "list_categories",
    "random",
    "last",
    "export_cmd",
    "import_cmd",
    "reset",
    "sync_now",
    "daemon",
    "conflicts",
]
