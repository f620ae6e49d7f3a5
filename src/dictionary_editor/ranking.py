"""Search and least-engaged selection over the entry collection."""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence

from dictionary_editor.models import CommunityStats, DictionaryEntry

_NO_VOTES = CommunityStats()


def least_engaged_key(entry: DictionaryEntry) -> tuple[int, int, int]:
    """Sort key for the review queue.

    Entries nobody has voted on come first regardless of anything else,
    then fewer downvotes, then fewer votes overall.
    """
    stats = entry.community_stats or _NO_VOTES
    total = stats.total
    return (0 if total == 0 else 1, stats.downvotes, total)


def select_least_engaged(
    entries: Iterable[DictionaryEntry],
    excluded_ids: Iterable[str] = (),
) -> DictionaryEntry | None:
    """Pick the least-engaged entry whose id is not in *excluded_ids*.

    Returns None once every entry is excluded.  Ties keep collection order.
    """
    excluded = set(excluded_ids)
    candidates = [e for e in entries if e.id not in excluded]
    if not candidates:
        return None
    return min(candidates, key=least_engaged_key)


def rank_least_engaged(entries: Iterable[DictionaryEntry]) -> list[DictionaryEntry]:
    """All entries in review-queue order (stable)."""
    return sorted(entries, key=least_engaged_key)


def matches(entry: DictionaryEntry, needle: str) -> bool:
    """Case-insensitive substring match on headword, gloss, definition or tag."""
    if needle in entry.headword.lower():
        return True
    for sense in entry.senses:
        if needle in sense.gloss.lower() or needle in sense.definition.lower():
            return True
        if any(needle in tag.lower() for tag in sense.tags):
            return True
    return False


def search_entries(
    entries: Iterable[DictionaryEntry],
    query: str,
) -> list[DictionaryEntry]:
    """Entries matching *query* in collection order; blank queries match nothing."""
    needle = query.strip().lower()
    if not needle:
        return []
    return [e for e in entries if matches(e, needle)]


def pick_random(
    entries: Sequence[DictionaryEntry],
    rng: random.Random | None = None,
) -> DictionaryEntry | None:
    if not entries:
        return None
    return (rng or random).choice(entries)
