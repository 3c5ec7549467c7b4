"""Domain enumerations and state-transition rules."""

import enum


class GameStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


# State machine: maps current status -> set of valid next statuses
GAME_TRANSITIONS: dict[GameStatus, set[GameStatus]] = {
    GameStatus.ACTIVE: {GameStatus.COMPLETED},
    GameStatus.COMPLETED: set(),
}


class GameMode(str, enum.Enum):
    GROUP = "group"
    SOLO = "solo"
    TRAINING = "training"


class GameKind(str, enum.Enum):
    COUNTRY = "country"
    WORLD = "world"
    IMAGE = "image"


class LocationSource(str, enum.Enum):
    """Which pool a ``GameRound.location_id`` points into."""

    LOCATIONS = "locations"
    WORLD_LOCATIONS = "worldLocations"
    IMAGE_LOCATIONS = "imageLocations"


# Each game kind draws from exactly one pool
SOURCE_FOR_KIND: dict[GameKind, LocationSource] = {
    GameKind.COUNTRY: LocationSource.LOCATIONS,
    GameKind.WORLD: LocationSource.WORLD_LOCATIONS,
    GameKind.IMAGE: LocationSource.IMAGE_LOCATIONS,
}


class SpaceKind(str, enum.Enum):
    GEO = "geo"
    PIXEL = "pixel"


class MemberRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"


class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
