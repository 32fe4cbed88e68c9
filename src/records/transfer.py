"""JSON import/export of record sets."""

import json
from pathlib import Path

import structlog

from errors import InvalidInput

from .models import Record
from .schema import dump_records

logger = structlog.get_logger()


def export_records(records: list[Record], path: str | Path) -> Path:
    """Write records as a pretty-printed JSON array."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(dump_records(records), indent=2, ensure_ascii=False))
    logger.info("records.exported", path=str(path), count=len(records))
    return path


def read_import(path: str | Path) -> list[tuple[str, str]]:
    """Read ``(text, category)`` pairs from a JSON array file.

    Entries that are not objects with string ``text`` and ``category`` are
    skipped.

    Raises:
        InvalidInput: file missing, not JSON, or not an array.
    """
    path = Path(path).expanduser()
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError as e:
        raise InvalidInput(f"Import file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Import file is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise InvalidInput("Imported JSON must be an array of {text, category} objects.")

    pairs = []
    skipped = 0
    for item in data:
        if (
            isinstance(item, dict)
            and isinstance(item.get("text"), str)
            and isinstance(item.get("category"), str)
        ):
            pairs.append((item["text"], item["category"]))
        else:
            skipped += 1
    if skipped:
        logger.warning("records.import_skipped", path=str(path), skipped=skipped)
    return pairs


def merge_imported(records: list[Record], pairs: list[tuple[str, str]]) -> list[Record]:
    """New records for pairs not already present, deduplicated by (text, category)."""
    existing = {r.content_key for r in records}
    added = []
    for text, category in pairs:
        if (text, category) in existing:
            continue
        added.append(Record.create(text, category))
        existing.add((text, category))
    return added
