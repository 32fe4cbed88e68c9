"""Persistent local record store — JSON payloads in a SQLite key/value table."""

import json
import sqlite3
from pathlib import Path

import structlog

from db import transaction
from errors import CorruptData, StorageUnavailable

from .models import Conflict, Record
from .schema import ValidationError, dump_conflicts, dump_records, parse_conflicts, parse_records

logger = structlog.get_logger()

RECORDS_KEY = "quotes_v1"
CONFLICTS_KEY = "conflicts_v1"
SETTINGS_PREFIX = "setting:"


class LocalStore:
    """Client-side persistence for the record set and pending conflicts.

    The whole record array lives under a single key and is replaced on every
    save, so a reader never observes a half-written set.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        try:
            with transaction(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Could not open store at {self.db_path}: {e}") from e

    def load(self) -> list[Record] | None:
        """Load the persisted record set.

        Returns None when nothing has been saved yet.

        Entries stored without an id (the legacy ``{text, category}`` shape) get
        one minted and the set is written back, so ids stay stable across runs.

        Raises:
            CorruptData: stored payload is not a well-formed record array.
            StorageUnavailable: the database could not be read.
        """
        raw = self._get(RECORDS_KEY)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptData(f"Stored records are not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise CorruptData(f"Stored records must be an array, got {type(data).__name__}")
        try:
            records = parse_records(data)
        except ValidationError as e:
            raise CorruptData(f"Stored records failed validation: {e.error_count()} error(s)") from e

        seen: set[str] = set()
        for r in records:
            if r.id in seen:
                raise CorruptData(f"Duplicate record id in storage: {r.id}")
            seen.add(r.id)

        if any(isinstance(item, dict) and not item.get("id") for item in data):
            try:
                self.save(records)
            except StorageUnavailable as e:
                logger.warning("store.legacy_ids_not_saved", error=str(e))
            else:
                logger.info("store.legacy_ids_assigned", count=len(records))
        return records

    def save(self, records: list[Record]) -> None:
        """Replace the persisted record set.

        Raises:
            StorageUnavailable: the database rejected the write.
        """
        self._put(RECORDS_KEY, json.dumps(dump_records(records)))
        logger.debug("store.saved", count=len(records))

    def load_conflicts(self) -> list[Conflict]:
        """Load pending conflicts; unreadable entries are dropped with a warning."""
        try:
            raw = self._get(CONFLICTS_KEY)
            if raw is None:
                return []
            return parse_conflicts(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("store.conflicts_corrupt", error=str(e))
            return []

    def save_conflicts(self, conflicts: list[Conflict]) -> None:
        self._put(CONFLICTS_KEY, json.dumps(dump_conflicts(conflicts)))

    def get_setting(self, name: str, default: str | None = None) -> str | None:
        """Small CLI preference (last filter, last viewed quote)."""
        value = self._get(SETTINGS_PREFIX + name)
        return default if value is None else value

    def set_setting(self, name: str, value: str) -> None:
        self._put(SETTINGS_PREFIX + name, value)

    def clear(self) -> None:
        """Drop everything stored. Used by reset."""
        try:
            with transaction(self.db_path) as conn:
                conn.execute("DELETE FROM kv_store")
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Could not clear store: {e}") from e

    def _get(self, key: str) -> str | None:
        try:
            with transaction(self.db_path) as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Could not read {key}: {e}") from e
        return row[0] if row else None

    def _put(self, key: str, value: str) -> None:
        try:
            with transaction(self.db_path) as conn:
                conn.execute(
                    """INSERT INTO kv_store (key, value, updated_at)
                       VALUES (?, ?, CURRENT_TIMESTAMP)
                       ON CONFLICT(key) DO UPDATE SET
                           value = excluded.value,
                           updated_at = excluded.updated_at""",
                    (key, value),
                )
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Could not write {key}: {e}") from e
