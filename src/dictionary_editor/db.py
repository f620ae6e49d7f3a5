"""Database connection, DDL, and the local snapshot cache for dictionary-editor."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from dictionary_editor.exceptions import DatabaseError, SnapshotCorruptError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"

# Snapshot keys
ENTRIES_KEY = "ai_dictionary_db"
USER_VOTES_KEY = "user_votes"

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Serialized snapshots, overwritten wholesale
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    UNIQUE (key)
);

-- Edit history
CREATE TABLE IF NOT EXISTS edit_history (
    rowid INTEGER PRIMARY KEY,
    entity_type TEXT NOT NULL CHECK( entity_type IN ('entry','sense','vote','suggestion') ),
    entity_id TEXT NOT NULL,
    field_name TEXT,
    operation TEXT NOT NULL CHECK( operation IN ('CREATE', 'UPDATE', 'DELETE') ),
    old_value TEXT,
    new_value TEXT,
    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
CREATE INDEX IF NOT EXISTS edit_history_entity_index ON edit_history (entity_type, entity_id);
CREATE INDEX IF NOT EXISTS edit_history_timestamp_index ON edit_history (timestamp);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with cache PRAGMA settings.

    The connection may be used from the write-behind thread; callers
    serialize access.
    """
    db_path_str = str(db_path)
    try:
        conn = sqlite3.connect(db_path_str, check_same_thread=False)
    except sqlite3.Error as e:
        raise DatabaseError(f"Cannot open {db_path_str}: {e}") from e
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create the meta, kv_store and edit_history tables on first open."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Refuse cache files written by an incompatible schema."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # fresh file
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


# ---------------------------------------------------------------------------
# Key-value helpers
# ---------------------------------------------------------------------------

def read_value(conn: sqlite3.Connection, key: str) -> str | None:
    """Return the raw serialized value stored under *key*, or None."""
    row = conn.execute(
        "SELECT value FROM kv_store WHERE key = ?",
        (key,),
    ).fetchone()
    return row["value"] if row else None


def write_value(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Overwrite the serialized value stored under *key*."""
    conn.execute(
        "INSERT INTO kv_store (key, value) VALUES (?, ?) "
        "ON CONFLICT (key) DO UPDATE SET value = excluded.value, "
        "updated_at = strftime('%Y-%m-%dT%H:%M:%f', 'now')",
        (key, value),
    )


class SnapshotCache:
    """Durable local key-value store holding JSON snapshots.

    Each key holds one whole document; :meth:`save` replaces it, there is
    no incremental update.
    """

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._conn = connect(db_path)
        check_schema_version(self._conn)
        init_db(self._conn)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def load(self, key: str) -> Any | None:
        """Decode the snapshot under *key*; None if nothing was stored.

        Raises :class:`SnapshotCorruptError` when the stored text is not
        valid JSON.
        """
        raw = read_value(self._conn, key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise SnapshotCorruptError(
                f"Snapshot {key!r} in {self._db_path} is not valid JSON: {e}"
            ) from e

    def save(self, key: str, value: Any) -> None:
        with self._conn:
            write_value(self._conn, key, json.dumps(value, ensure_ascii=False))
        logger.debug("Saved snapshot %r to %s", key, self._db_path)

    def save_raw(self, key: str, raw: str) -> None:
        """Store *raw* text as-is (used to restore foreign snapshots)."""
        with self._conn:
            write_value(self._conn, key, raw)

    def delete(self, key: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> SnapshotCache:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
