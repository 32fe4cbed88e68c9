"""Built-in record set used on first run and after corrupt storage."""

from .models import Record

_DEFAULT_QUOTES = [
    ("The best way to get started is to quit talking and begin doing.", "Motivation"),
    ("Don’t let yesterday take up too much of today.", "Motivation"),
    ("In the middle of every difficulty lies opportunity.", "Inspiration"),
    ("Life is what happens when you're busy making other plans.", "Life"),
]


def default_records() -> list[Record]:
    """Fresh default records; each call mints new local ids."""
    return [Record.create(text, category) for text, category in _DEFAULT_QUOTES]
