"""
Typed rejections raised by the domain and the progression service.

Every error carries a machine-readable ``code`` and the HTTP status the
delivery layer should answer with.  Nothing here is retried by the core.
"""

from __future__ import annotations


class GameError(Exception):
    code = "game_error"
    status_code = 400

    def __init__(self, message: str | None = None):
        self.message = message or (self.__doc__ or self.code).strip()
        super().__init__(self.message)


class InsufficientLocations(GameError):
    """Not enough unused locations for another round."""

    code = "insufficient_locations"
    status_code = 409

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Not enough unused locations for another round "
            f"(required: {required}, available: {available})"
        )
        self.required = required
        self.available = available


class RoundNotReleased(GameError):
    """This round has not been released yet."""

    code = "round_not_released"
    status_code = 403


class AlreadyGuessed(GameError):
    """Already guessed this round."""

    code = "already_guessed"
    status_code = 409


class Unauthorized(GameError):
    """Not allowed to act on this game."""

    code = "unauthorized"
    status_code = 403


class LocationNotFound(GameError):
    """A game round references a location missing from its pool."""

    code = "location_not_found"
    status_code = 500


class GameNotFound(GameError):
    """Game not found."""

    code = "game_not_found"
    status_code = 404


class RoundNotFound(GameError):
    """Round not found."""

    code = "round_not_found"
    status_code = 404


class GameNotActive(GameError):
    """Game is already completed."""

    code = "game_not_active"
    status_code = 409


class ReleaseInProgress(GameError):
    """Another round release for this game is in flight."""

    code = "release_in_progress"
    status_code = 409


class ReleaseConflict(GameError):
    """This round was released concurrently by another request."""

    code = "release_conflict"
    status_code = 409


class UnknownGameType(GameError):
    """Unknown game type."""

    code = "unknown_game_type"
    status_code = 400


class ActiveGameExists(GameError):
    """The group already has an active game."""

    code = "active_game_exists"
    status_code = 409


class InvalidGuess(GameError):
    """A guess needs a coordinate unless it is a timeout."""

    code = "invalid_guess"
    status_code = 422


class HintsDisabled(GameError):
    """Hints are not enabled for this user."""

    code = "hints_disabled"
    status_code = 403
