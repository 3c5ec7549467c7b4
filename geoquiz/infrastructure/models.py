"""
SQLAlchemy ORM models.

Tables
------
* ``users``            -- players (``hint_enabled`` per user)
* ``groups``           -- play groups; ``group_members`` holds roles
* ``locations``        -- country pool (lat/lng, filtered by ``country``)
* ``world_locations``  -- world pool (lat/lng, filtered by ``category``)
* ``image_locations``  -- image pool (pixel x/y, filtered by ``image_map_id``)
* ``games``            -- one play session, ``current_round`` = highest released
* ``game_rounds``      -- one location slot of a round
* ``guesses``          -- one player's answer to one slot

Constraints
-----------
* ``uq_game_rounds_slot`` (game_id, round_number, location_index): at most
  one successful release per (game, round number).
* ``uq_guesses_round_user`` (game_round_id, user_id): at most one guess per
  player and slot.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from .database import Base
from geoquiz.domain.enums import (
    Difficulty,
    GameMode,
    GameStatus,
    LocationSource,
    MemberRole,
)


def _values(enum_cls):
    return [member.value for member in enum_cls]


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=True)
    email = Column(String(255), unique=True, nullable=True)
    hint_enabled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class GroupModel(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    invite_code = Column(String(16), unique=True, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    locations_per_round = Column(Integer, default=5, nullable=False)
    time_limit_seconds = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class GroupMemberModel(Base):
    __tablename__ = "group_members"

    group_id = Column(Integer, ForeignKey("groups.id"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    role = Column(
        Enum(MemberRole, values_callable=_values),
        default=MemberRole.MEMBER,
        nullable=False,
    )
    joined_at = Column(DateTime(timezone=True), server_default=func.now())


class LocationModel(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    name_de = Column(String(200), nullable=True)
    name_en = Column(String(200), nullable=True)
    name_sl = Column(String(200), nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    country = Column(String(80), default="Switzerland", nullable=False)
    difficulty = Column(
        Enum(Difficulty, values_callable=_values), default=Difficulty.MEDIUM
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_locations_country", "country"),)


class WorldLocationModel(Base):
    __tablename__ = "world_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    name_de = Column(String(200), nullable=True)
    name_en = Column(String(200), nullable=True)
    name_sl = Column(String(200), nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    category = Column(String(40), nullable=False)
    difficulty = Column(
        Enum(Difficulty, values_callable=_values), default=Difficulty.MEDIUM
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_world_locations_category", "category"),)


class ImageLocationModel(Base):
    __tablename__ = "image_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    name_de = Column(String(200), nullable=True)
    name_en = Column(String(200), nullable=True)
    image_map_id = Column(String(40), nullable=False)
    x = Column(Float, nullable=False)
    y = Column(Float, nullable=False)
    difficulty = Column(
        Enum(Difficulty, values_callable=_values), default=Difficulty.MEDIUM
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_image_locations_map", "image_map_id"),)


class GameModel(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    mode = Column(
        Enum(GameMode, values_callable=_values), default=GameMode.GROUP, nullable=False
    )
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    name = Column(String(120), nullable=True)

    # Legacy pool selector; ``game_type`` wins when set
    country = Column(String(40), default="switzerland", nullable=False)
    game_type = Column(String(60), nullable=True)

    locations_per_round = Column(Integer, default=5, nullable=False)
    time_limit_seconds = Column(Integer, nullable=True)
    status = Column(
        Enum(GameStatus, values_callable=_values),
        default=GameStatus.ACTIVE,
        nullable=False,
    )
    current_round = Column(Integer, default=0, nullable=False)
    leaderboard_revealed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_games_group_status", "group_id", "status"),
        Index("idx_games_user", "user_id"),
    )


class GameRoundModel(Base):
    __tablename__ = "game_rounds"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False)
    round_number = Column(Integer, nullable=False)
    location_index = Column(Integer, default=1, nullable=False)
    location_id = Column(Integer, nullable=False)
    location_source = Column(
        Enum(LocationSource, values_callable=_values),
        default=LocationSource.LOCATIONS,
        nullable=False,
    )
    country = Column(String(40), default="switzerland", nullable=False)
    game_type = Column(String(60), nullable=True)
    time_limit_seconds = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "game_id", "round_number", "location_index", name="uq_game_rounds_slot"
        ),
        Index("idx_game_rounds_game", "game_id"),
    )


class GuessModel(Base):
    __tablename__ = "guesses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_round_id = Column(Integer, ForeignKey("game_rounds.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Null on timeout
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    distance_km = Column(Float, nullable=False)
    time_seconds = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("game_round_id", "user_id", name="uq_guesses_round_user"),
        Index("idx_guesses_user", "user_id"),
    )
