"""SQLite helpers — WAL connections and short-lived transactions."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path


def wal_connect(
    db_path: str | Path, row_factory: bool = False, timeout: float = 5.0
) -> sqlite3.Connection:
    """Open SQLite connection with WAL journal mode.

    Args:
        db_path: Path to database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.
        timeout: Seconds to wait on a locked database before failing.
    """
    conn = sqlite3.connect(str(db_path), timeout=timeout)
    conn.execute("PRAGMA journal_mode=WAL")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(db_path: str | Path, timeout: float = 5.0):
    """Connection scoped to one unit of work.

    Commits on success and rolls back on error. The connection is always closed.
    """
    conn = wal_connect(db_path, timeout=timeout)
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
