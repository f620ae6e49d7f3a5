"""Remote table gateway and the write-behind worker that drives it.

The store treats every remote call as fallible: :class:`SyncWorker` runs
calls on a background thread, logs failures and never re-raises them.
"""

from __future__ import annotations

import abc
import copy
import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

import requests

from dictionary_editor.exceptions import RemoteSyncError

logger = logging.getLogger(__name__)

ENTRIES_TABLE = "dictionary_entries"
VOTES_TABLE = "word_votes"
SUGGESTIONS_TABLE = "word_suggestions"

Row = dict[str, Any]


class RemoteGateway(abc.ABC):
    """Create/read/update/delete/upsert calls against a table backend."""

    @abc.abstractmethod
    def select(self, table: str, columns: str = "*") -> list[Row]:
        ...

    @abc.abstractmethod
    def upsert(self, table: str, rows: Iterable[Row], on_conflict: str) -> None:
        ...

    @abc.abstractmethod
    def insert(self, table: str, row: Row) -> None:
        ...

    @abc.abstractmethod
    def delete(self, table: str, match: Row) -> None:
        """Delete rows whose columns equal every value in *match*."""


# ---------------------------------------------------------------------------
# PostgREST (Supabase) backend
# ---------------------------------------------------------------------------

class RestGateway(RemoteGateway):
    """Gateway for a PostgREST endpoint such as a Supabase project."""

    def __init__(
        self,
        url: str,
        key: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base = url.rstrip("/") + "/rest/v1"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        })

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        url = f"{self._base}/{table}"
        try:
            resp = self._session.request(
                method, url,
                params=params, json=json, headers=headers,
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise RemoteSyncError(f"{method} {table} failed: {e}") from e
        return resp

    def select(self, table: str, columns: str = "*") -> list[Row]:
        resp = self._request("GET", table, params={"select": columns})
        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteSyncError(f"GET {table} returned invalid JSON") from e
        if not isinstance(data, list):
            raise RemoteSyncError(f"GET {table} returned {type(data).__name__}, expected list")
        return data

    def upsert(self, table: str, rows: Iterable[Row], on_conflict: str) -> None:
        self._request(
            "POST", table,
            params={"on_conflict": on_conflict.replace(" ", "")},
            json=list(rows),
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    def insert(self, table: str, row: Row) -> None:
        self._request(
            "POST", table,
            json=row,
            headers={"Prefer": "return=minimal"},
        )

    def delete(self, table: str, match: Row) -> None:
        if not match:
            raise RemoteSyncError(f"Refusing unfiltered DELETE on {table}")
        params = {col: f"eq.{value}" for col, value in match.items()}
        self._request("DELETE", table, params=params)


# ---------------------------------------------------------------------------
# In-process backend
# ---------------------------------------------------------------------------

class MemoryGateway(RemoteGateway):
    """In-process tables; stands in for the backend when none is configured."""

    def __init__(self, tables: dict[str, list[Row]] | None = None) -> None:
        self._lock = threading.Lock()
        self.tables: dict[str, list[Row]] = copy.deepcopy(tables) if tables else {}

    def select(self, table: str, columns: str = "*") -> list[Row]:
        with self._lock:
            rows = copy.deepcopy(self.tables.get(table, []))
        if columns.strip() == "*":
            return rows
        wanted = [c.strip() for c in columns.split(",")]
        return [{c: row.get(c) for c in wanted} for row in rows]

    def upsert(self, table: str, rows: Iterable[Row], on_conflict: str) -> None:
        keys = [c.strip() for c in on_conflict.split(",")]
        with self._lock:
            stored = self.tables.setdefault(table, [])
            for row in rows:
                row = copy.deepcopy(row)
                ident = tuple(row.get(k) for k in keys)
                for i, existing in enumerate(stored):
                    if tuple(existing.get(k) for k in keys) == ident:
                        stored[i] = {**existing, **row}
                        break
                else:
                    stored.append(row)
        logger.debug("[MemoryGateway] upserted into %s", table)

    def insert(self, table: str, row: Row) -> None:
        with self._lock:
            self.tables.setdefault(table, []).append(copy.deepcopy(row))
        logger.debug("[MemoryGateway] inserted into %s", table)

    def delete(self, table: str, match: Row) -> None:
        with self._lock:
            rows = self.tables.get(table, [])
            self.tables[table] = [
                r for r in rows
                if any(r.get(k) != v for k, v in match.items())
            ]


# ---------------------------------------------------------------------------
# Write-behind worker
# ---------------------------------------------------------------------------

class SyncWorker:
    """Runs gateway calls off the caller's path, one at a time, in order.

    Failures are logged and swallowed; nothing is retried.
    """

    def __init__(self, gateway: RemoteGateway | None) -> None:
        self._gateway = gateway
        self._executor: ThreadPoolExecutor | None = None
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    @property
    def gateway(self) -> RemoteGateway | None:
        return self._gateway

    def submit(
        self,
        description: str,
        call: Callable[[RemoteGateway], Any],
    ) -> Future | None:
        """Schedule ``call(gateway)``; returns None when no gateway is set."""
        if self._gateway is None:
            return None
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="remote-sync",
            )
        future = self._executor.submit(self._run, description, call)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _run(self, description: str, call: Callable[[RemoteGateway], Any]) -> bool:
        try:
            call(self._gateway)
        except Exception as e:
            logger.warning("Remote sync failed (%s): %s", description, e)
            return False
        logger.debug("Remote sync done (%s)", description)
        return True

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def drain(self, timeout: float | None = None) -> None:
        """Block until every call submitted so far has finished."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
