"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Game``: enforces the one-way lifecycle
  (active -> completed) and the monotonic ``current_round`` counter.
- ``LocationRef`` is the tagged reference (pool + id) used everywhere a
  round points at a location, so ids of different pools never collide.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import GAME_TRANSITIONS, Difficulty, GameMode, GameStatus, LocationSource


class InvalidStateTransition(Exception):
    """Raised when a game status change violates the state machine."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    """A map position.  On image maps ``lat`` is the pixel y, ``lng`` the x."""

    lat: float
    lng: float


@dataclass(frozen=True)
class LocationRef:
    source: LocationSource
    id: int


@dataclass(frozen=True)
class PoolLocation:
    ref: LocationRef
    name: str
    coordinate: Coordinate
    difficulty: Difficulty = Difficulty.MEDIUM


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Game:
    id: Optional[int] = None
    mode: GameMode = GameMode.GROUP
    group_id: Optional[int] = None
    user_id: Optional[int] = None
    name: Optional[str] = None
    country: str = "switzerland"
    game_type: Optional[str] = None
    locations_per_round: int = 5
    time_limit_seconds: Optional[int] = None
    status: GameStatus = GameStatus.ACTIVE
    current_round: int = 0
    leaderboard_revealed: bool = False

    @property
    def is_active(self) -> bool:
        return self.status == GameStatus.ACTIVE

    def transition_to(self, new_status: GameStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = GAME_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    def release(self, round_number: int) -> None:
        """Mark *round_number* as released.  Rounds go up one at a time."""
        if not self.is_active:
            raise InvalidStateTransition("Cannot release a round of a completed game")
        if round_number != self.current_round + 1:
            raise InvalidStateTransition(
                f"Round {round_number} does not follow round {self.current_round}"
            )
        self.current_round = round_number
        self.leaderboard_revealed = False

    def complete(self) -> None:
        self.transition_to(GameStatus.COMPLETED)


@dataclass
class GameRound:
    id: Optional[int] = None
    game_id: Optional[int] = None
    round_number: int = 1
    location_index: int = 1
    location: LocationRef = field(
        default_factory=lambda: LocationRef(LocationSource.LOCATIONS, 0)
    )
    country: str = "switzerland"
    game_type: Optional[str] = None
    time_limit_seconds: Optional[int] = None


@dataclass
class Guess:
    id: Optional[int] = None
    game_round_id: Optional[int] = None
    user_id: int = 0
    coordinate: Optional[Coordinate] = None
    distance_km: float = 0.0
    time_seconds: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_timeout(self) -> bool:
        return self.coordinate is None
