"""Shared test fixtures for dictionary-editor."""

import itertools

import pytest

from dictionary_editor import (
    CommunityStats,
    DictionaryEntry,
    DictionaryStore,
    MemoryGateway,
    Sense,
    SnapshotCache,
)


def make_entry(headword, *senses, id=None, stats=None):
    """Build an entry; each sense is a ``(gloss, definition)`` pair."""
    if not senses:
        senses = ((f"{headword} gloss", f"{headword} definition"),)
    return DictionaryEntry(
        headword=headword,
        id=id,
        senses=tuple(
            Sense(sense_id=f"s{i}", pos="noun", gloss=g, definition=d)
            for i, (g, d) in enumerate(senses, start=1)
        ),
        community_stats=CommunityStats(*stats) if stats is not None else None,
    )


@pytest.fixture
def make():
    return make_entry


@pytest.fixture
def id_factory():
    """Deterministic ids: new-1, new-2, ..."""
    counter = itertools.count(1)
    return lambda: f"new-{next(counter)}"


@pytest.fixture
def cache():
    """In-memory snapshot cache."""
    with SnapshotCache(":memory:") as c:
        yield c


@pytest.fixture
def gateway():
    return MemoryGateway()


@pytest.fixture
def store(cache, gateway, id_factory):
    """Store seeded with the bundled default entries."""
    s = DictionaryStore(cache, gateway, id_factory=id_factory)
    yield s
    s.close()


@pytest.fixture
def empty_store(cache, gateway, id_factory):
    """Store with no default entries."""
    s = DictionaryStore(cache, gateway, defaults=(), id_factory=id_factory)
    yield s
    s.close()
