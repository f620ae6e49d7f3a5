"""Headword-keyed merge of candidate entries into a collection.

Candidates come from generated content, import files or the remote
backend.  The merge never edits its inputs; it returns a new tuple of
entries plus a description of what changed.
"""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from dictionary_editor.models import CommunityStats, DictionaryEntry, Sense


def new_entry_id() -> str:
    return str(uuid.uuid4())


def merge_key(headword: str) -> str:
    return headword.lower()


@dataclass
class MergeOutcome:
    """Result of :func:`merge_entries`."""

    entries: tuple[DictionaryEntry, ...]
    added: list[DictionaryEntry] = field(default_factory=list)
    updated: list[DictionaryEntry] = field(default_factory=list)
    stats_overrides: dict[str, CommunityStats] = field(default_factory=dict)

    @property
    def changed(self) -> list[DictionaryEntry]:
        """Added and updated entries, each once, in final collection order."""
        ids = {e.id for e in self.added} | {e.id for e in self.updated}
        return [e for e in self.entries if e.id in ids]


def is_duplicate_sense(candidate: Sense, existing: Iterable[Sense]) -> bool:
    """True when *existing* has a sense with the same gloss (any case) or definition."""
    gloss = candidate.gloss.lower()
    return any(
        s.gloss.lower() == gloss or s.definition == candidate.definition
        for s in existing
    )


def merge_senses(
    existing: Sequence[Sense],
    candidates: Iterable[Sense],
) -> tuple[Sense, ...]:
    """Append genuinely new senses, renumbered ``s<count+1>``."""
    merged = list(existing)
    for sense in candidates:
        if is_duplicate_sense(sense, merged):
            continue
        merged.append(dataclasses.replace(sense, sense_id=f"s{len(merged) + 1}"))
    return tuple(merged)


def merge_entries(
    existing: Sequence[DictionaryEntry],
    candidates: Iterable[DictionaryEntry],
    *,
    id_factory: Callable[[], str] = new_entry_id,
) -> MergeOutcome:
    """Merge *candidates* into *existing* by case-insensitive headword.

    - Unknown headwords are prepended (newest first) and get an id if
      they lack one.
    - Known headwords keep the stored entry's id; senses whose gloss or
      definition is not already present are appended.
    - Candidate ``community_stats`` are reported in ``stats_overrides``
      under the surviving id so the caller can overwrite its vote counts.

    The first stored entry with a given key is treated as canonical.
    Headwords must be non-empty strings; this is not checked here.
    """
    # prepended entries, newest first
    fresh: list[DictionaryEntry] = []
    current = list(existing)
    # key -> ("fresh" | "current", index)
    index: dict[str, tuple[str, int]] = {}
    for i, entry in enumerate(current):
        index.setdefault(merge_key(entry.headword), ("current", i))

    outcome = MergeOutcome(entries=())
    updated_ids: set[str] = set()

    for candidate in candidates:
        key = merge_key(candidate.headword)
        location = index.get(key)

        if location is None:
            entry = candidate
            if entry.id is None:
                entry = dataclasses.replace(entry, id=id_factory())
            fresh.append(entry)
            index[key] = ("fresh", len(fresh) - 1)
            outcome.added.append(entry)
            if candidate.community_stats is not None:
                outcome.stats_overrides[entry.id] = candidate.community_stats
            continue

        bucket, pos = location
        target = fresh if bucket == "fresh" else current
        stored = target[pos]
        if stored.id is None:
            stored = dataclasses.replace(stored, id=candidate.id or id_factory())
            target[pos] = stored

        if candidate.community_stats is not None:
            outcome.stats_overrides[stored.id] = candidate.community_stats

        senses = merge_senses(stored.senses, candidate.senses)
        if len(senses) == len(stored.senses):
            continue
        stored = dataclasses.replace(stored, senses=senses)
        target[pos] = stored
        updated_ids.add(stored.id)

    outcome.entries = tuple(reversed(fresh)) + tuple(current)
    # refresh added/updated to their final merged values
    by_id = {e.id: e for e in outcome.entries}
    outcome.added = [by_id[e.id] for e in outcome.added]
    outcome.updated = [by_id[i] for i in by_id if i in updated_ids]
    return outcome
