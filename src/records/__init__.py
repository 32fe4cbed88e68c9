"""Quote records — model, local persistence and read helpers."""

from .defaults import default_records
from .models import Choice, Conflict, Origin, Record
from .query import categories, filter_by_category, pick_random
from .store import LocalStore

__all__ = [
    "Choice",
    "Conflict",
    "Origin",
    "Record",
    "LocalStore",
    "default_records",
    "categories",
    "filter_by_category",
    "pick_random",
]
