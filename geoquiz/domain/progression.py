"""
Round Availability & Progression
================================

Pure rules behind the per-game state machine::

    NO_ROUNDS (current_round = 0) -> ROUND_ACTIVE(1) -> ... -> COMPLETED

* A round's locations are drawn without replacement across the whole
  game's history, compared by ``LocationRef`` (pool + id).
* A round is playable iff ``round_number <= current_round``.
* For one user, round *n* is complete iff every slot of round *n* has a
  guess from that user.

Nothing here touches storage; ``services.progression`` applies these rules
inside a transaction.
"""

from __future__ import annotations

import random
from collections import defaultdict
from collections.abc import Iterable, Sequence

from .entities import Game, GameRound, LocationRef, PoolLocation
from .errors import InsufficientLocations


def select_round_locations(
    pool: Sequence[PoolLocation],
    used: Iterable[LocationRef],
    count: int,
    rng: random.Random,
) -> list[PoolLocation]:
    """Pick *count* unused locations uniformly at random.

    Raises ``InsufficientLocations`` when fewer than *count* remain.
    """
    used_refs = set(used)
    available = [loc for loc in pool if loc.ref not in used_refs]
    if len(available) < count:
        raise InsufficientLocations(required=count, available=len(available))

    rng.shuffle(available)
    return available[:count]


def plan_round(
    game: Game,
    selection: Sequence[PoolLocation],
    game_type: str,
    pool_selector: str,
    time_limit_seconds: int | None = None,
) -> list[GameRound]:
    """Build the ``GameRound`` batch for the game's next round."""
    round_number = game.current_round + 1
    return [
        GameRound(
            game_id=game.id,
            round_number=round_number,
            location_index=index,
            location=loc.ref,
            country=pool_selector,
            game_type=game_type,
            time_limit_seconds=time_limit_seconds,
        )
        for index, loc in enumerate(selection, start=1)
    ]


def is_round_released(round_number: int, current_round: int) -> bool:
    return round_number <= current_round


def slots_per_round(rounds: Iterable[GameRound]) -> dict[int, set[int]]:
    """round_number -> ids of that round's slots."""
    slots: dict[int, set[int]] = defaultdict(set)
    for r in rounds:
        slots[r.round_number].add(r.id)
    return dict(slots)


def completed_rounds(
    rounds: Iterable[GameRound], guessed_round_ids: Iterable[int]
) -> list[int]:
    """Round numbers the user has fully answered, ascending."""
    guessed = set(guessed_round_ids)
    return sorted(
        number
        for number, ids in slots_per_round(rounds).items()
        if ids and ids <= guessed
    )


def is_finished_for_user(
    current_round: int,
    rounds: Iterable[GameRound],
    guessed_round_ids: Iterable[int],
) -> bool:
    """True when at least one round is out and every released round is complete."""
    if current_round == 0:
        return False
    released = [r for r in rounds if is_round_released(r.round_number, current_round)]
    done = set(completed_rounds(released, guessed_round_ids))
    return all(n in done for n in range(1, current_round + 1))
