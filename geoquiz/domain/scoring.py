"""
Score Function
==============

Formula
-------
Score = round_half_up(100 x e^(-distance / scale_factor)), clamped to [0, 100]

* **scale_factor** is per game type: the distance at which a guess earns
  ~37 % (1/e) of the maximum.  Tens of km on country maps, thousands on
  world maps, tens of meters on image maps.
* Timeouts are scored from the game type's fixed penalty distance, through
  the same curve.

Complexity: O(1) per score.
"""

from __future__ import annotations

import math

from .distance import round_half_up
from .game_types import GameTypeRegistry

MAX_SCORE = 100


def calculate_score(distance: float, scale_factor: float) -> int:
    """Map a distance to an integer score in [0, MAX_SCORE]."""
    distance = max(0.0, distance)
    raw = MAX_SCORE * math.exp(-distance / scale_factor)
    return min(MAX_SCORE, max(0, int(round_half_up(raw))))


class Scorer:
    """Scores distances against the scale factor of a registered game type."""

    def __init__(self, registry: GameTypeRegistry):
        self.registry = registry

    def compute_score(self, distance: float, game_type_id: str | None) -> int:
        config = self.registry.lookup(game_type_id)
        return calculate_score(distance, config.score_scale_factor)

    def timeout_distance(self, game_type_id: str | None) -> float:
        return self.registry.lookup(game_type_id).timeout_penalty
