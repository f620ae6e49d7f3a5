"""Vote ledger: aggregate counts plus each user's current vote per entry."""

from __future__ import annotations

import dataclasses
from typing import Any

from dictionary_editor.models import CommunityStats, DictionaryEntry, VoteDirection


class VoteLedger:
    """Source of truth for community vote counts.

    ``counts`` maps entry id to aggregate :class:`CommunityStats`.  User
    directions are keyed by ``(user_id, entry_id)`` so a user contributes to
    at most one of the two counters of an entry at any time.
    """

    def __init__(self) -> None:
        self._counts: dict[str, CommunityStats] = {}
        self._user_votes: dict[str, dict[str, VoteDirection]] = {}

    # ------------------------------------------------------------------
    # Aggregate counts
    # ------------------------------------------------------------------

    def stats_for(self, entry_id: str | None) -> CommunityStats | None:
        if entry_id is None:
            return None
        return self._counts.get(entry_id)

    def set_counts(self, entry_id: str, stats: CommunityStats) -> None:
        """Overwrite the counts for *entry_id* (last write wins)."""
        self._counts[entry_id] = stats

    def forget(self, entry_id: str) -> None:
        """Drop counts and user directions recorded for *entry_id*."""
        self._counts.pop(entry_id, None)
        for votes in self._user_votes.values():
            votes.pop(entry_id, None)

    def overlay(self, entry: DictionaryEntry) -> DictionaryEntry:
        """Return *entry* carrying the ledger's current stats, if any."""
        stats = self.stats_for(entry.id)
        if stats is None or stats == entry.community_stats:
            return entry
        return dataclasses.replace(entry, community_stats=stats)

    # ------------------------------------------------------------------
    # Voting protocol
    # ------------------------------------------------------------------

    def vote(
        self,
        entry_id: str,
        user_id: str,
        direction: VoteDirection,
    ) -> VoteDirection | None:
        """Apply one vote and return the user's resulting direction.

        Repeating the current direction retracts it (returns None); the
        opposite direction swaps the vote.  A counter is only decremented
        after this user incremented it, so counts never go negative.
        """
        direction = VoteDirection(direction)
        stats = self._counts.get(entry_id, CommunityStats())
        user_votes = self._user_votes.setdefault(user_id, {})
        previous = user_votes.get(entry_id)

        if previous == direction:
            stats = _adjust(stats, direction, -1)
            del user_votes[entry_id]
            result = None
        else:
            if previous is not None:
                stats = _adjust(stats, previous, -1)
            stats = _adjust(stats, direction, +1)
            user_votes[entry_id] = direction
            result = direction

        self._counts[entry_id] = stats
        return result

    def user_vote(self, entry_id: str, user_id: str) -> VoteDirection | None:
        return self._user_votes.get(user_id, {}).get(entry_id)

    def voted_entry_ids(self, user_id: str) -> frozenset[str]:
        return frozenset(self._user_votes.get(user_id, {}))

    # ------------------------------------------------------------------
    # Persistence of user directions
    # ------------------------------------------------------------------

    def user_votes_to_dict(self) -> dict[str, dict[str, str]]:
        return {
            user_id: {entry_id: d.value for entry_id, d in votes.items()}
            for user_id, votes in self._user_votes.items()
            if votes
        }

    def load_user_votes(self, data: dict[str, Any] | None) -> None:
        self._user_votes = {}
        for user_id, votes in (data or {}).items():
            self._user_votes[user_id] = {
                entry_id: VoteDirection(d) for entry_id, d in votes.items()
            }


def _adjust(stats: CommunityStats, direction: VoteDirection, delta: int) -> CommunityStats:
    if direction is VoteDirection.UP:
        return dataclasses.replace(stats, upvotes=stats.upvotes + delta)
    return dataclasses.replace(stats, downvotes=stats.downvotes + delta)
