"""Leaderboard aggregation over scored guesses."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ScoredGuess:
    user_id: int
    round_number: int
    distance_km: float
    score: int


@dataclass
class LeaderboardEntry:
    user_id: int
    user_name: Optional[str] = None
    total_distance: float = 0.0
    total_score: int = 0
    rounds_played: int = 0
    completed: bool = False
    rank: int = 0


def build_leaderboard(
    guesses: Iterable[ScoredGuess],
    names: dict[int, Optional[str]] | None = None,
    slots_expected: int | None = None,
    round_number: int | None = None,
) -> list[LeaderboardEntry]:
    """Aggregate per user and rank by score (desc), then distance (asc).

    *slots_expected* is the number of released slots; a user who answered
    all of them is flagged ``completed``.  Equal score and distance share a
    rank.
    """
    names = names or {}
    entries: dict[int, LeaderboardEntry] = {}
    for g in guesses:
        if round_number is not None and g.round_number != round_number:
            continue
        entry = entries.setdefault(
            g.user_id, LeaderboardEntry(user_id=g.user_id, user_name=names.get(g.user_id))
        )
        entry.total_distance += g.distance_km
        entry.total_score += g.score
        entry.rounds_played += 1

    ranked = sorted(
        entries.values(), key=lambda e: (-e.total_score, e.total_distance, e.user_id)
    )
    previous: tuple[int, float] | None = None
    for position, entry in enumerate(ranked, start=1):
        entry.total_distance = round(entry.total_distance, 3)
        key = (entry.total_score, entry.total_distance)
        entry.rank = ranked[position - 2].rank if key == previous else position
        previous = key
        if slots_expected:
            entry.completed = entry.rounds_played >= slots_expected
    return ranked
