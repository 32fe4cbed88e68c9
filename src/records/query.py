"""Read-only helpers over a record list: categories, filtering, random pick."""

import random

from .models import Record

ALL_CATEGORIES = "all"


def categories(records: list[Record]) -> list[str]:
    """Unique categories in first-seen order."""
    return list(dict.fromkeys(r.category for r in records))


def filter_by_category(records: list[Record], category: str | None) -> list[Record]:
    if not category or category == ALL_CATEGORIES:
        return list(records)
    return [r for r in records if r.category == category]


def pick_random(
    records: list[Record], category: str | None = None, rng: random.Random | None = None
) -> Record | None:
    """Random record from ``category``, falling back to all records if it is empty."""
    if not records:
        return None
    pool = filter_by_category(records, category) or list(records)
    return (rng or random).choice(pool)


def find_duplicate(records: list[Record], text: str, category: str) -> Record | None:
    for r in records:
        if r.text == text and r.category == category:
            return r
    return None
