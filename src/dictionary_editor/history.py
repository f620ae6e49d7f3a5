"""Local edit log: every store mutation leaves one row per changed thing.

Values are stored as JSON text so entries, vote counts and plain strings
share a column.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any

from dictionary_editor.models import EditOperation, EditRecord

_COLUMNS = (
    "entity_type", "entity_id", "field_name", "operation", "old_value", "new_value",
)
_INSERT = (
    f"INSERT INTO edit_history ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)})"
)

# query_history keyword -> SQL condition
_FILTERS = {
    "entity_type": "entity_type = ?",
    "entity_id": "entity_id = ?",
    "since": "timestamp > ?",
    "operation": "operation = ?",
}


def _encode(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def _log(
    conn: sqlite3.Connection,
    operation: EditOperation,
    entity_type: str,
    entity_id: str,
    field_name: str | None = None,
    old_value: Any = None,
    new_value: Any = None,
) -> None:
    conn.execute(_INSERT, (
        entity_type, entity_id, field_name, operation.value,
        _encode(old_value), _encode(new_value),
    ))


def record_create(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    new_value: dict | None = None,
) -> None:
    """Log a newly merged entry or a submitted suggestion."""
    _log(conn, EditOperation.CREATE, entity_type, entity_id, new_value=new_value or None)


def record_update(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    field_name: str,
    old_value: Any,
    new_value: Any,
) -> None:
    """Log a changed field: appended senses, a replaced entry, or vote counts.

    Unlike creates and deletes, ``None`` values are kept as JSON ``null``
    so an entry voted on for the first time still shows where it started.
    """
    conn.execute(_INSERT, (
        entity_type, entity_id, field_name, EditOperation.UPDATE.value,
        json.dumps(old_value, ensure_ascii=False),
        json.dumps(new_value, ensure_ascii=False),
    ))


def record_delete(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    old_value: dict | None = None,
) -> None:
    """Log a removed entry."""
    _log(conn, EditOperation.DELETE, entity_type, entity_id, old_value=old_value or None)


def _row_to_record(row: sqlite3.Row) -> EditRecord:
    return EditRecord(id=row["rowid"], **{name: row[name] for name in (*_COLUMNS, "timestamp")})


def query_history(
    conn: sqlite3.Connection,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    since: str | None = None,
    operation: str | None = None,
    limit: int | None = None,
) -> list[EditRecord]:
    """Log rows matching every given filter, oldest first.

    With *limit*, only the newest *limit* matches are returned (still
    oldest first).
    """
    given = {
        "entity_type": entity_type,
        "entity_id": entity_id,
        "since": since,
        "operation": operation,
    }
    clauses = [_FILTERS[k] for k, v in given.items() if v is not None]
    params: list[str | int] = [v for v in given.values() if v is not None]
    where = " AND ".join(clauses) or "1=1"

    if limit is None:
        sql = f"SELECT * FROM edit_history WHERE {where} ORDER BY timestamp, rowid"
    else:
        sql = (
            f"SELECT * FROM (SELECT * FROM edit_history WHERE {where} "
            "ORDER BY timestamp DESC, rowid DESC LIMIT ?) "
            "ORDER BY timestamp, rowid"
        )
        params.append(limit)

    return [_row_to_record(row) for row in conn.execute(sql, params).fetchall()]
