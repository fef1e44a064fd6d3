"""Repository pattern for context sources and their chunks.

This is the persistence port: the CLI opens a connection, wraps it in a
Repository and passes plain ContextSource objects to the engine. The engine
itself never touches the database.
"""

from __future__ import annotations

import json
import sqlite3

from devtoolbox.context.models import (
    ChunkMetadata,
    ContextChunk,
    ContextSource,
    SourceMetadata,
)

_SOURCE_COLUMNS = "id, kind, locator, title, status, error, metadata, created_at, updated_at"


class Repository:
    """Data access layer for context sources.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (``Database.connect()`` migrates it).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def save_source(self, source: ContextSource) -> None:
        """Insert or update *source* and replace its chunks wholesale.

        Runs in a single transaction, so a refresh never leaves a source with
        a mix of old and new chunks.

        Args:
            source: Source to persist; its ``chunks`` become the stored chunks.
        """
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO sources (id, kind, locator, title, status, error, metadata)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    kind = excluded.kind,
                    locator = excluded.locator,
                    title = excluded.title,
                    status = excluded.status,
                    error = excluded.error,
                    metadata = excluded.metadata,
                    updated_at = datetime('now')
                """,
                (
                    source.id,
                    source.kind,
                    source.locator,
                    source.title,
                    source.status,
                    source.error,
                    json.dumps(source.metadata.to_dict()),
                ),
            )
            self._conn.execute("DELETE FROM chunks WHERE source_id = ?", (source.id,))
            self._conn.executemany(
                """
                INSERT INTO chunks (id, source_id, position, content, metadata, tokens)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        c.id,
                        source.id,
                        i,
                        c.content,
                        json.dumps(c.metadata.to_dict()),
                        c.tokens,
                    )
                    for i, c in enumerate(source.chunks)
                ],
            )

    def get_source(self, source_id: str) -> ContextSource | None:
        """Return a source (with chunks) by ID, or None if not found."""
        row = self._conn.execute(
            f"SELECT {_SOURCE_COLUMNS} FROM sources WHERE id = ?", (source_id,)
        ).fetchone()
        return self._load(row) if row else None

    def get_source_by_locator(self, locator: str) -> ContextSource | None:
        """Return the most recently updated source with *locator*, or None."""
        row = self._conn.execute(
            f"SELECT {_SOURCE_COLUMNS} FROM sources WHERE locator = ? "
            "ORDER BY updated_at DESC, rowid DESC LIMIT 1",
            (locator,),
        ).fetchone()
        return self._load(row) if row else None

    def find_source(self, ref: str) -> ContextSource | None:
        """Resolve *ref* as an id, a unique id prefix, or a locator."""
        if not ref:
            return None
        source = self.get_source(ref) or self.get_source_by_locator(ref)
        if source is not None:
            return source
        rows = self._conn.execute(
            f"SELECT {_SOURCE_COLUMNS} FROM sources WHERE substr(id, 1, ?) = ? LIMIT 2",
            (len(ref), ref),
        ).fetchall()
        if len(rows) == 1:
            return self._load(rows[0])
        return None

    def list_sources(self, status: str | None = None) -> list[ContextSource]:
        """Return all sources (with chunks), oldest first.

        Args:
            status: Only return sources in this lifecycle state.
        """
        sql = f"SELECT {_SOURCE_COLUMNS} FROM sources"
        params: tuple = ()
        if status is not None:
            sql += " WHERE status = ?"
            params = (status,)
        sql += " ORDER BY created_at, rowid"
        return [self._load(r) for r in self._conn.execute(sql, params).fetchall()]

    def delete_source(self, source_id: str) -> int:
        """Delete a source and (via ON DELETE CASCADE) its chunks.

        Returns:
            Number of chunks that were removed with it.
        """
        count = self.count_chunks_by_source(source_id)
        with self._conn:
            self._conn.execute("DELETE FROM sources WHERE id = ?", (source_id,))
        return count

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def count_chunks_by_source(self, source_id: str) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM chunks WHERE source_id = ?", (source_id,)
        ).fetchone()[0]

    def list_chunks(self, source_id: str) -> list[ContextChunk]:
        """Return the chunks of *source_id* in stored order."""
        rows = self._conn.execute(
            "SELECT id, content, metadata, tokens FROM chunks "
            "WHERE source_id = ? ORDER BY position",
            (source_id,),
        ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def total_tokens(self) -> int:
        return self._conn.execute("SELECT COALESCE(SUM(tokens), 0) FROM chunks").fetchone()[0]

    # ------------------------------------------------------------------
    # Row → model helpers
    # ------------------------------------------------------------------

    def _load(self, row: sqlite3.Row) -> ContextSource:
        source = _row_to_source(row)
        source.chunks = self.list_chunks(source.id)
        return source


def _row_to_source(row: sqlite3.Row) -> ContextSource:
    return ContextSource(
        id=row["id"],
        kind=row["kind"],
        locator=row["locator"],
        title=row["title"],
        status=row["status"],
        error=row["error"],
        metadata=SourceMetadata.from_dict(json.loads(row["metadata"])),
    )


def _row_to_chunk(row: sqlite3.Row) -> ContextChunk:
    return ContextChunk(
        id=row["id"],
        content=row["content"],
        metadata=ChunkMetadata.from_dict(json.loads(row["metadata"])),
        tokens=row["tokens"],
    )