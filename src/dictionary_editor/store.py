"""DictionaryStore: main entry point for the dictionary-editor library."""

from __future__ import annotations

import dataclasses
import functools
import logging
import random
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar

from dictionary_editor import db as _db
from dictionary_editor import history as _hist
from dictionary_editor.defaults import default_entries
from dictionary_editor.exceptions import (
    EntityNotFoundError,
    SnapshotCorruptError,
    ValidationError,
)
from dictionary_editor.gateway import (
    ENTRIES_TABLE,
    SUGGESTIONS_TABLE,
    VOTES_TABLE,
    RemoteGateway,
    SyncWorker,
)
from dictionary_editor.merge import merge_entries, new_entry_id
from dictionary_editor.models import (
    CommunityStats,
    DictionaryEntry,
    EditRecord,
    ImportResult,
    SuggestionResult,
    SuggestionStatus,
    VoteDirection,
    entry_from_dict,
    entry_to_dict,
)
from dictionary_editor.ranking import pick_random, search_entries, select_least_engaged
from dictionary_editor.votes import VoteLedger

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])

Listener = Callable[[], None]


def _mutates(method: _F) -> _F:
    """Decorator: persist the snapshot, queue remote calls, then notify listeners.

    History rows written by the method commit together with the snapshot;
    an exception rolls them back and skips persistence, remote calls and
    notification.
    """

    @functools.wraps(method)
    def wrapper(self: DictionaryStore, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            self._outbox.clear()
            with self._cache.connection:
                result = method(self, *args, **kwargs)
                self._persist()
            outbox = list(self._outbox)
            self._outbox.clear()
        for description, call in outbox:
            self._sync.submit(description, call)
        self._notify()
        return result

    return wrapper  # type: ignore[return-value]


class DictionaryStore:
    """In-memory entry collection with a vote ledger and write-behind sync.

    Reads always come from local state.  Every mutation is persisted to the
    :class:`~dictionary_editor.db.SnapshotCache` before returning; remote
    calls are queued afterwards and may fail silently.
    """

    def __init__(
        self,
        cache: _db.SnapshotCache | str | Path | None = None,
        gateway: RemoteGateway | None = None,
        *,
        defaults: Iterable[DictionaryEntry] | None = None,
        sync_on_start: bool = True,
        id_factory: Callable[[], str] = new_entry_id,
    ) -> None:
        self._owns_cache = not isinstance(cache, _db.SnapshotCache)
        if isinstance(cache, _db.SnapshotCache):
            self._cache = cache
        else:
            self._cache = _db.SnapshotCache(cache if cache is not None else ":memory:")
        self._sync = SyncWorker(gateway)
        self._defaults = (
            tuple(defaults) if defaults is not None else default_entries()
        )
        self._id_factory = id_factory
        self._ledger = VoteLedger()
        self._entries: tuple[DictionaryEntry, ...] = ()
        self._listeners: set[Listener] = set()
        self._outbox: list[tuple[str, Callable[[RemoteGateway], Any]]] = []
        # guards entries, ledger and the cache connection
        self._lock = threading.RLock()

        self._load()
        if sync_on_start:
            self._sync.submit("initial pull", lambda gw: self.sync_with_remote())

    def close(self) -> None:
        """Wait for queued remote calls, then release the cache."""
        self._sync.shutdown()
        if self._owns_cache:
            self._cache.close()

    def __enter__(self) -> DictionaryStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        try:
            entries = self._read_snapshot()
        except SnapshotCorruptError as e:
            logger.error("Failed to parse dictionary snapshot: %s", e)
            entries = None

        seeded = entries is None
        if seeded:
            logger.info("Seeding dictionary with %d default entries", len(self._defaults))
            entries = self._defaults

        assigned = any(e.id is None for e in entries)
        self._entries = tuple(
            e if e.id is not None else dataclasses.replace(e, id=self._id_factory())
            for e in entries
        )
        for entry in self._entries:
            if entry.community_stats is not None:
                self._ledger.set_counts(entry.id, entry.community_stats)

        try:
            self._ledger.load_user_votes(self._cache.load(_db.USER_VOTES_KEY))
        except (SnapshotCorruptError, ValueError, AttributeError) as e:
            logger.error("Discarding unreadable user votes: %s", e)

        if seeded or assigned:
            self._persist()

    def _read_snapshot(self) -> list[DictionaryEntry] | None:
        data = self._cache.load(_db.ENTRIES_KEY)
        if data is None:
            return None
        if not isinstance(data, list):
            raise SnapshotCorruptError(
                f"Snapshot root is {type(data).__name__}, expected list"
            )
        try:
            return [entry_from_dict(item) for item in data]
        except (ValidationError, TypeError, ValueError) as e:
            raise SnapshotCorruptError(f"Malformed entry in snapshot: {e}") from e

    def _persist(self) -> None:
        snapshot = [entry_to_dict(e) for e in self.get_all()]
        self._cache.save(_db.ENTRIES_KEY, snapshot)
        self._cache.save(_db.USER_VOTES_KEY, self._ledger.user_votes_to_dict())

    def _queue_remote(
        self, description: str, call: Callable[[RemoteGateway], Any]
    ) -> None:
        self._outbox.append((description, call))

    def flush(self, timeout: float | None = None) -> None:
        """Block until queued remote calls have finished (or failed)."""
        self._sync.drain(timeout)

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Call *callback* after every mutation; returns an unsubscribe function.

        Merges from the startup pull notify on the write-behind thread.  A
        callback that raises is logged and does not stop the others.
        """
        self._listeners.add(callback)

        def unsubscribe() -> None:
            self._listeners.discard(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("Subscriber %r failed", callback)

    # ------------------------------------------------------------------
    # Remote pull
    # ------------------------------------------------------------------

    def sync_with_remote(self) -> ImportResult | None:
        """Merge entries stored remotely into the local collection.

        The constructor runs this on the write-behind worker; call it
        directly to pull again.  Best effort: rows that do not decode to an
        entry with a headword are skipped, and any other failure is logged
        and None is returned.
        """
        gateway = self._sync.gateway
        if gateway is None:
            return None
        try:
            rows = gateway.select(ENTRIES_TABLE, "id, headword, entry")
            candidates = _remote_candidates(rows)
            if not candidates:
                return ImportResult(added=0, updated=0)
            result = self._merge_remote(candidates)
        except Exception as e:
            logger.warning("Remote sync failed: %s", e)
            return None
        logger.info(
            "Remote sync merged %d added, %d updated", result.added, result.updated
        )
        return result

    @_mutates
    def _merge_remote(self, candidates: list[DictionaryEntry]) -> ImportResult:
        before = {e.id: e for e in self._entries}
        outcome = merge_entries(self._entries, candidates, id_factory=self._id_factory)
        # local vote counts win for entries we already had
        for entry_id, stats in outcome.stats_overrides.items():
            if entry_id not in before:
                self._ledger.set_counts(entry_id, stats)
        self._entries = outcome.entries
        self._record_merge(outcome.added, outcome.updated, before)
        return ImportResult(added=len(outcome.added), updated=len(outcome.updated))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all(self) -> list[DictionaryEntry]:
        """The whole collection with current vote counts."""
        with self._lock:
            return [self._ledger.overlay(e) for e in self._entries]

    def get_entry(self, headword: str) -> DictionaryEntry:
        """First entry whose headword matches case-insensitively."""
        key = headword.lower()
        for entry in self._entries:
            if entry.headword.lower() == key:
                return self._ledger.overlay(entry)
        raise EntityNotFoundError(f"Entry not found: {headword!r}")

    def search(self, query: str) -> list[DictionaryEntry]:
        return search_entries(self.get_all(), query)

    def get_random(self, rng: random.Random | None = None) -> DictionaryEntry | None:
        """A random entry; the first default entry when the collection is empty."""
        entry = pick_random(self.get_all(), rng)
        if entry is None and self._defaults:
            return self._defaults[0]
        return entry

    def get_least_voted_word(self, user_id: str | None = None) -> DictionaryEntry | None:
        """Next entry for the review queue.

        Skips entries *user_id* already voted on.  Returns None once the
        user has voted on everything; an empty collection yields the first
        default entry instead.
        """
        if not self._entries:
            return self._defaults[0] if self._defaults else None
        with self._lock:
            excluded = self._ledger.voted_entry_ids(user_id) if user_id else ()
        return select_least_engaged(self.get_all(), excluded)

    def get_user_vote(self, entry_id: str, user_id: str) -> VoteDirection | None:
        return self._ledger.user_vote(entry_id, user_id)

    def get_stats(self, entry_id: str) -> CommunityStats:
        """Current vote counts for *entry_id* (zero when never voted on)."""
        return self._ledger.stats_for(entry_id) or CommunityStats()

    def get_history(
        self,
        entity_type: str | None = None,
        entity_id: str | None = None,
        *,
        since: str | None = None,
        operation: str | None = None,
        limit: int | None = None,
    ) -> list[EditRecord]:
        with self._lock:
            return _hist.query_history(
                self._cache.connection,
                entity_type=entity_type,
                entity_id=entity_id,
                since=since,
                operation=operation,
                limit=limit,
            )

    # ------------------------------------------------------------------
    # Import / merge
    # ------------------------------------------------------------------

    @_mutates
    def add_entries(self, candidates: Iterable[DictionaryEntry]) -> ImportResult:
        """Merge candidates by case-insensitive headword.

        Candidate ``community_stats`` overwrite the stored vote counts.
        Every candidate must have a non-empty headword; this is a
        precondition and is not checked.
        """
        candidates = list(candidates)
        before = {e.id: e for e in self._entries}
        outcome = merge_entries(self._entries, candidates, id_factory=self._id_factory)
        for entry_id, stats in outcome.stats_overrides.items():
            self._ledger.set_counts(entry_id, stats)
        self._entries = outcome.entries
        self._record_merge(outcome.added, outcome.updated, before)

        changed = [self._ledger.overlay(e) for e in outcome.changed]
        if changed:
            rows = [_entry_row(e) for e in changed]
            self._queue_remote(
                f"upsert {len(rows)} entries",
                lambda gw: gw.upsert(ENTRIES_TABLE, rows, on_conflict="headword"),
            )

        logger.info(
            "Merged %d candidates: %d added, %d updated",
            len(candidates), len(outcome.added), len(outcome.updated),
        )
        return ImportResult(added=len(outcome.added), updated=len(outcome.updated))

    def _record_merge(
        self,
        added: list[DictionaryEntry],
        updated: list[DictionaryEntry],
        before: dict[str | None, DictionaryEntry],
    ) -> None:
        conn = self._cache.connection
        for entry in added:
            _hist.record_create(
                conn, "entry", entry.headword,
                {"id": entry.id, "senses": len(entry.senses)},
            )
        for entry in updated:
            old = before.get(entry.id)
            _hist.record_update(
                conn, "entry", entry.headword, "senses",
                len(old.senses) if old else 0, len(entry.senses),
            )

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    @_mutates
    def vote_for_word(
        self,
        entry_id: str,
        user_id: str,
        direction: VoteDirection | str,
    ) -> VoteDirection | None:
        """Cast, swap or retract *user_id*'s vote on *entry_id*.

        Returns the user's vote after the call (None when retracted).  The
        local counts are final for this session whatever the backend says.
        """
        try:
            direction = VoteDirection(direction)
        except ValueError as e:
            raise ValidationError(f"Invalid vote direction: {direction!r}") from e

        before = self._ledger.stats_for(entry_id)
        result = self._ledger.vote(entry_id, user_id, direction)
        after = self._ledger.stats_for(entry_id)
        _hist.record_update(
            self._cache.connection, "vote", entry_id, direction.value,
            _stats_dict(before), _stats_dict(after),
        )

        match = {"word_id": entry_id, "user_id": user_id}
        if result is None:
            self._queue_remote(
                f"retract vote on {entry_id}",
                lambda gw: gw.delete(VOTES_TABLE, match),
            )
        else:
            row = {**match, "vote_type": result.value}
            self._queue_remote(
                f"vote {result.value} on {entry_id}",
                lambda gw: gw.upsert(VOTES_TABLE, [row], on_conflict="word_id,user_id"),
            )
        return result

    def submit_suggestion(
        self,
        entry_id: str | None,
        user_id: str,
        proposed: DictionaryEntry,
    ) -> SuggestionResult:
        """Send a proposed edit for review; waits for the backend's answer."""
        gateway = self._sync.gateway
        if gateway is None:
            return SuggestionResult(success=False, error="No remote backend configured")
        row = {
            "original_word_id": entry_id,
            "user_id": user_id,
            "proposed_content": entry_to_dict(proposed),
            "status": SuggestionStatus.PENDING.value,
        }
        try:
            gateway.insert(SUGGESTIONS_TABLE, row)
        except Exception as e:
            logger.error("Suggestion submit error: %s", e)
            return SuggestionResult(success=False, error=str(e))
        with self._lock, self._cache.connection:
            _hist.record_create(
                self._cache.connection, "suggestion", entry_id or proposed.headword,
                {"user_id": user_id, "headword": proposed.headword},
            )
        return SuggestionResult(success=True)

    # ------------------------------------------------------------------
    # Admin edits
    # ------------------------------------------------------------------

    @_mutates
    def update_entry(
        self, original_headword: str, entry: DictionaryEntry
    ) -> DictionaryEntry:
        """Replace the first entry whose headword equals *original_headword*.

        The match is case-sensitive and the replacement keeps the old
        position.  Stats carried by *entry* overwrite the vote counts.
        """
        for index, existing in enumerate(self._entries):
            if existing.headword == original_headword:
                break
        else:
            raise EntityNotFoundError(f"Entry not found: {original_headword!r}")

        if entry.id is None:
            entry = dataclasses.replace(entry, id=existing.id)
        if entry.community_stats is not None:
            self._ledger.set_counts(entry.id, entry.community_stats)

        entries = list(self._entries)
        entries[index] = entry
        self._entries = tuple(entries)

        _hist.record_update(
            self._cache.connection, "entry", original_headword, "entry",
            entry_to_dict(existing), entry_to_dict(entry),
        )

        row = _entry_row(self._ledger.overlay(entry))
        self._queue_remote(
            f"upsert {entry.headword!r}",
            lambda gw: gw.upsert(ENTRIES_TABLE, [row], on_conflict="headword"),
        )
        if entry.headword != original_headword:
            self._queue_remote(
                f"delete renamed {original_headword!r}",
                lambda gw: gw.delete(ENTRIES_TABLE, {"headword": original_headword}),
            )
        return self._ledger.overlay(entry)

    @_mutates
    def delete_entry(self, headword: str) -> int:
        """Remove every entry whose headword equals *headword* exactly."""
        removed = [e for e in self._entries if e.headword == headword]
        self._entries = tuple(e for e in self._entries if e.headword != headword)
        for entry in removed:
            _hist.record_delete(
                self._cache.connection, "entry", headword, {"id": entry.id},
            )
            self._ledger.forget(entry.id)

        if removed:
            self._queue_remote(
                f"delete {headword!r}",
                lambda gw: gw.delete(ENTRIES_TABLE, {"headword": headword}),
            )
        else:
            logger.info("No entry with headword %r to delete", headword)
        return len(removed)


def _entry_row(entry: DictionaryEntry) -> dict[str, Any]:
    return {"id": entry.id, "headword": entry.headword, "entry": entry_to_dict(entry)}


def _stats_dict(stats: Any) -> dict[str, int] | None:
    if stats is None:
        return None
    return {"upvotes": stats.upvotes, "downvotes": stats.downvotes}


def _remote_candidates(rows: Iterable[Any]) -> list[DictionaryEntry]:
    """Decode ``dictionary_entries`` rows, skipping the unusable ones."""
    candidates = []
    for row in rows:
        if not isinstance(row, dict):
            logger.warning("Skipping remote row of type %s", type(row).__name__)
            continue
        try:
            entry = entry_from_dict(row.get("entry"))
        except ValidationError as e:
            logger.warning("Skipping remote row %r: %s", row.get("headword"), e)
            continue
        if not entry.headword.strip():
            logger.warning("Skipping remote row %r: empty headword", row.get("id"))
            continue
        if entry.id is None and row.get("id"):
            entry = dataclasses.replace(entry, id=str(row["id"]))
        candidates.append(entry)
    return candidates
