"""SQLite connection layer for the per-project context store."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from devtoolbox.db.migrations import run_migrations

logger = logging.getLogger(__name__)


class Database:
    """The ``.devtoolbox.db`` file holding context sources and their chunks.

    Every connection comes back with foreign keys on (so deleting a source
    cascades to its chunks) and with the schema migrated to the latest
    version. Callers never run migrations themselves.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Open, configure and migrate a new connection. The caller closes it."""
        logger.debug("Opening context store %s", self.db_path)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        try:
            run_migrations(conn)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
