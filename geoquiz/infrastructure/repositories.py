"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Conversions to domain entities live here so
the rules in ``geoquiz.domain`` never see ORM rows.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    GameModel,
    GameRoundModel,
    GroupMemberModel,
    GuessModel,
    ImageLocationModel,
    LocationModel,
    UserModel,
    WorldLocationModel,
)
from geoquiz.domain.entities import (
    Coordinate,
    Game,
    GameRound,
    LocationRef,
    PoolLocation,
)
from geoquiz.domain.enums import (
    SOURCE_FOR_KIND,
    Difficulty,
    GameKind,
    GameStatus,
    LocationSource,
    MemberRole,
)
from geoquiz.domain.game_types import GameTypeConfig


# ── Games ─────────────────────────────────────────────────────────────


def game_to_entity(model: GameModel) -> Game:
    return Game(
        id=model.id,
        mode=model.mode,
        group_id=model.group_id,
        user_id=model.user_id,
        name=model.name,
        country=model.country,
        game_type=model.game_type,
        locations_per_round=model.locations_per_round,
        time_limit_seconds=model.time_limit_seconds,
        status=GameStatus(model.status),
        current_round=model.current_round,
        leaderboard_revealed=model.leaderboard_revealed,
    )


class GameRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, game: GameModel) -> GameModel:
        self.session.add(game)
        await self.session.flush()
        return game

    async def get_by_id(self, game_id: int) -> Optional[GameModel]:
        return await self.session.get(GameModel, game_id)

    async def get_for_update(self, game_id: int) -> Optional[GameModel]:
        """SELECT ... FOR UPDATE so concurrent releases serialise on the row."""
        result = await self.session.execute(
            select(GameModel)
            .where(GameModel.id == game_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_active_for_group(self, group_id: int) -> Optional[GameModel]:
        result = await self.session.execute(
            select(GameModel)
            .where(
                GameModel.group_id == group_id,
                GameModel.status == GameStatus.ACTIVE,
            )
            .order_by(GameModel.created_at.desc(), GameModel.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def apply(entity: Game, model: GameModel) -> None:
        """Copy the mutable state of *entity* back onto its row."""
        model.status = entity.status
        model.current_round = entity.current_round
        model.leaderboard_revealed = entity.leaderboard_revealed


# ── Rounds ────────────────────────────────────────────────────────────


def round_to_entity(model: GameRoundModel) -> GameRound:
    return GameRound(
        id=model.id,
        game_id=model.game_id,
        round_number=model.round_number,
        location_index=model.location_index,
        location=LocationRef(LocationSource(model.location_source), model.location_id),
        country=model.country,
        game_type=model.game_type,
        time_limit_seconds=model.time_limit_seconds,
    )


class GameRoundRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, round_id: int) -> Optional[GameRoundModel]:
        return await self.session.get(GameRoundModel, round_id)

    async def list_for_game(self, game_id: int) -> list[GameRoundModel]:
        result = await self.session.execute(
            select(GameRoundModel)
            .where(GameRoundModel.game_id == game_id)
            .order_by(GameRoundModel.round_number, GameRoundModel.location_index)
        )
        return list(result.scalars().all())

    async def used_location_refs(self, game_id: int) -> set[LocationRef]:
        """Every location used by any round of the game so far."""
        result = await self.session.execute(
            select(GameRoundModel.location_source, GameRoundModel.location_id).where(
                GameRoundModel.game_id == game_id
            )
        )
        return {
            LocationRef(LocationSource(source), location_id)
            for source, location_id in result.all()
        }

    async def create_batch(self, rounds: list[GameRound]) -> list[GameRoundModel]:
        models = [
            GameRoundModel(
                game_id=r.game_id,
                round_number=r.round_number,
                location_index=r.location_index,
                location_id=r.location.id,
                location_source=r.location.source,
                country=r.country,
                game_type=r.game_type,
                time_limit_seconds=r.time_limit_seconds,
            )
            for r in rounds
        ]
        self.session.add_all(models)
        await self.session.flush()
        return models


# ── Guesses ───────────────────────────────────────────────────────────


class GuessRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, guess: GuessModel) -> GuessModel:
        self.session.add(guess)
        await self.session.flush()
        return guess

    async def get_for_user(
        self, game_round_id: int, user_id: int
    ) -> Optional[GuessModel]:
        result = await self.session.execute(
            select(GuessModel).where(
                GuessModel.game_round_id == game_round_id,
                GuessModel.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def released_guesses(
        self, game_id: int, current_round: int
    ) -> list[tuple[GuessModel, GameRoundModel]]:
        """All guesses on released rounds of a game, with their slot."""
        result = await self.session.execute(
            select(GuessModel, GameRoundModel)
            .join(GameRoundModel, GuessModel.game_round_id == GameRoundModel.id)
            .where(
                GameRoundModel.game_id == game_id,
                GameRoundModel.round_number <= current_round,
            )
            .order_by(GameRoundModel.round_number, GameRoundModel.location_index)
        )
        return [(guess, game_round) for guess, game_round in result.all()]

    async def distances_for_user(self, game_id: int, user_id: int) -> dict[int, float]:
        """game_round_id -> distance of the user's guess, for one game."""
        result = await self.session.execute(
            select(GuessModel.game_round_id, GuessModel.distance_km)
            .join(GameRoundModel, GuessModel.game_round_id == GameRoundModel.id)
            .where(
                GameRoundModel.game_id == game_id,
                GuessModel.user_id == user_id,
            )
        )
        return {round_id: distance for round_id, distance in result.all()}


# ── Location pools ────────────────────────────────────────────────────


class LocationPoolRepository:
    """One entry point for all three pools, keyed by ``LocationSource``."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_pool_location(source: LocationSource, row) -> PoolLocation:
        if source == LocationSource.IMAGE_LOCATIONS:
            # image maps: lat = y, lng = x
            coordinate = Coordinate(lat=row.y, lng=row.x)
        else:
            coordinate = Coordinate(lat=row.latitude, lng=row.longitude)
        return PoolLocation(
            ref=LocationRef(source, row.id),
            name=row.name,
            coordinate=coordinate,
            difficulty=Difficulty(row.difficulty or Difficulty.MEDIUM),
        )

    @staticmethod
    def _query_for(config: GameTypeConfig):
        source = SOURCE_FOR_KIND[config.kind]
        if config.kind == GameKind.IMAGE:
            query = select(ImageLocationModel).where(
                ImageLocationModel.image_map_id == config.selector
            )
        elif config.kind == GameKind.WORLD:
            query = select(WorldLocationModel).where(
                WorldLocationModel.category == config.selector
            )
        else:
            country_name = config.country_name or config.selector.capitalize()
            query = select(LocationModel).where(LocationModel.country == country_name)
        return source, query

    async def pool_for(self, config: GameTypeConfig) -> list[PoolLocation]:
        source, query = self._query_for(config)
        result = await self.session.execute(query)
        return [self._to_pool_location(source, row) for row in result.scalars().all()]

    async def count_for(self, config: GameTypeConfig) -> int:
        _, query = self._query_for(config)
        result = await self.session.execute(
            select(func.count()).select_from(query.subquery())
        )
        return result.scalar() or 0

    async def resolve(self, ref: LocationRef) -> Optional[PoolLocation]:
        model = {
            LocationSource.LOCATIONS: LocationModel,
            LocationSource.WORLD_LOCATIONS: WorldLocationModel,
            LocationSource.IMAGE_LOCATIONS: ImageLocationModel,
        }[ref.source]
        row = await self.session.get(model, ref.id)
        if row is None:
            return None
        return self._to_pool_location(ref.source, row)


# ── Users & groups ────────────────────────────────────────────────────


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def names_for(self, user_ids: set[int]) -> dict[int, Optional[str]]:
        if not user_ids:
            return {}
        result = await self.session.execute(
            select(UserModel.id, UserModel.name).where(UserModel.id.in_(user_ids))
        )
        return {user_id: name for user_id, name in result.all()}


class MembershipRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_role(self, group_id: int, user_id: int) -> Optional[MemberRole]:
        result = await self.session.execute(
            select(GroupMemberModel.role).where(
                GroupMemberModel.group_id == group_id,
                GroupMemberModel.user_id == user_id,
            )
        )
        role = result.scalar_one_or_none()
        return MemberRole(role) if role is not None else None
