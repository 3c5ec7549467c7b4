"""
Progression Service
===================

Applies the pure rules from ``geoquiz.domain`` to persisted games inside
one unit-of-work (``AsyncSession``).  The caller commits on success and
rolls back on error; every operation either applies as a whole or leaves
state untouched.

Concurrency safety
------------------
* **Round release**: a per-game Redis lock, then ``SELECT … FOR UPDATE``
  on the game row, then the unique ``(game_id, round_number,
  location_index)`` constraint as the last guard.  Used locations, the
  availability check, the row inserts and the ``current_round`` bump all
  happen under that lock and in one transaction.
* **Guess submission**: existence check plus the unique
  ``(game_round_id, user_id)`` constraint; the insert runs in a SAVEPOINT
  so a lost race surfaces as ``AlreadyGuessed``.
"""

from __future__ import annotations

import contextlib
import logging
import random
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from geoquiz.domain.distance import compute_distance, space_for
from geoquiz.domain.entities import Coordinate, Game
from geoquiz.domain.enums import GameKind, GameMode, GameStatus, MemberRole
from geoquiz.domain.errors import (
    ActiveGameExists,
    AlreadyGuessed,
    GameNotActive,
    GameNotFound,
    HintsDisabled,
    InsufficientLocations,
    InvalidGuess,
    LocationNotFound,
    ReleaseConflict,
    RoundNotFound,
    RoundNotReleased,
    Unauthorized,
)
from geoquiz.domain.game_types import (
    DEFAULT_COUNTRY,
    GameTypeConfig,
    GameTypeRegistry,
    effective_game_type,
)
from geoquiz.domain.hint import Hint, HintGenerator
from geoquiz.domain.leaderboard import LeaderboardEntry, ScoredGuess, build_leaderboard
from geoquiz.domain.progression import (
    completed_rounds,
    is_finished_for_user,
    is_round_released,
    plan_round,
    select_round_locations,
)
from geoquiz.domain.scoring import Scorer
from geoquiz.infrastructure.models import GameModel, GameRoundModel, GuessModel
from geoquiz.infrastructure.repositories import (
    GameRepository,
    GameRoundRepository,
    GuessRepository,
    LocationPoolRepository,
    MembershipRepository,
    UserRepository,
    game_to_entity,
    round_to_entity,
)

logger = logging.getLogger(__name__)

LockFactory = Callable[[int], AbstractAsyncContextManager]


def _no_lock(game_id: int) -> AbstractAsyncContextManager:
    return contextlib.nullcontext()


# ── Results ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RoundRelease:
    round_number: int
    locations_in_round: int
    game_type: str


@dataclass(frozen=True)
class GuessResult:
    guess_id: int
    distance_km: float
    score: int
    target: Coordinate
    game_type: str
    timeout: bool = False


@dataclass(frozen=True)
class GameProgress:
    game_id: int
    status: GameStatus
    current_round: int
    locations_per_round: int
    user_completed_rounds: int
    finished: bool
    name: Optional[str] = None


@dataclass(frozen=True)
class LeaderboardView:
    game_id: int
    revealed: bool
    current_round: int
    game_type: str
    entries: list[LeaderboardEntry]


@dataclass(frozen=True)
class RoundHint:
    game_round_id: int
    hint: Hint


@dataclass(frozen=True)
class RoundSlot:
    """A released slot as one player sees it; the target stays hidden."""

    game_round_id: int
    round_number: int
    location_index: int
    game_type: str
    time_limit_seconds: Optional[int] = None
    guessed: bool = False
    distance_km: Optional[float] = None
    score: Optional[int] = None


# ── Service ───────────────────────────────────────────────────────────


class ProgressionService:
    """Round release, guessing and completion for one request's session."""

    def __init__(
        self,
        session: AsyncSession,
        registry: GameTypeRegistry,
        rng: Optional[random.Random] = None,
        lock_factory: Optional[LockFactory] = None,
    ):
        self.session = session
        self.registry = registry
        self.rng = rng or random.Random()
        self.lock_factory = lock_factory or _no_lock
        self.scorer = Scorer(registry)
        self.hints = HintGenerator(registry, self.rng)

        self.games = GameRepository(session)
        self.rounds = GameRoundRepository(session)
        self.guesses = GuessRepository(session)
        self.pools = LocationPoolRepository(session)
        self.members = MembershipRepository(session)
        self.users = UserRepository(session)

    # ── Authorization ─────────────────────────────────────────────

    async def _authorize_admin(self, game: Game, user_id: int) -> None:
        """Group admins control group games; owners control solo/training games."""
        if game.mode == GameMode.GROUP:
            role = await self.members.get_role(game.group_id, user_id)
            if role != MemberRole.ADMIN:
                raise Unauthorized("Only group admins can control this game")
        elif game.user_id != user_id:
            raise Unauthorized("You can only control your own games")

    async def _authorize_player(self, game: Game, user_id: int) -> None:
        if game.mode == GameMode.GROUP:
            if await self.members.get_role(game.group_id, user_id) is None:
                raise Unauthorized("Not a member of this group")
        elif game.user_id != user_id:
            raise Unauthorized("You can only play your own games")

    def _game_type_for(self, game: Game) -> GameTypeConfig:
        return self.registry.lookup(effective_game_type(game.game_type, game.country))

    @staticmethod
    def _pool_selector(config: GameTypeConfig) -> str:
        """Value stored on ``game_rounds.country`` for a round of *config*."""
        if config.kind == GameKind.WORLD:
            return "world"
        return config.selector

    async def _load_game(self, game_id: int, for_update: bool = False) -> GameModel:
        if for_update:
            model = await self.games.get_for_update(game_id)
        else:
            model = await self.games.get_by_id(game_id)
        if model is None:
            raise GameNotFound()
        return model

    # ── Game lifecycle ────────────────────────────────────────────

    async def create_game(
        self,
        *,
        user_id: int,
        locations_per_round: int,
        mode: GameMode = GameMode.GROUP,
        group_id: Optional[int] = None,
        game_type: Optional[str] = None,
        country: Optional[str] = None,
        name: Optional[str] = None,
        time_limit_seconds: Optional[int] = None,
    ) -> GameModel:
        """Create a game with no round released yet (``current_round = 0``)."""
        if game_type:
            config = self.registry.lookup_strict(game_type)
        else:
            config = self.registry.lookup_strict(
                effective_game_type(None, country or DEFAULT_COUNTRY)
            )
        legacy_country = (
            config.selector if config.kind == GameKind.COUNTRY else DEFAULT_COUNTRY
        )

        draft = Game(mode=mode, group_id=group_id, user_id=user_id)
        if mode == GameMode.GROUP:
            if group_id is None:
                raise Unauthorized("Group games need a group")
            await self._authorize_admin(draft, user_id)
            if await self.games.get_active_for_group(group_id) is not None:
                raise ActiveGameExists()

        available = await self.pools.count_for(config)
        if available < locations_per_round:
            raise InsufficientLocations(required=locations_per_round, available=available)

        game = await self.games.create(
            GameModel(
                mode=mode,
                group_id=group_id if mode == GameMode.GROUP else None,
                user_id=user_id if mode != GameMode.GROUP else None,
                name=name,
                country=legacy_country,
                game_type=game_type,
                locations_per_round=locations_per_round,
                time_limit_seconds=time_limit_seconds,
                status=GameStatus.ACTIVE,
                current_round=0,
                leaderboard_revealed=False,
            )
        )
        logger.info("Game %d created (%s, %s)", game.id, mode.value, config.id)
        return game

    async def release_round(
        self,
        game_id: int,
        user_id: int,
        game_type: Optional[str] = None,
        locations_per_round: Optional[int] = None,
        time_limit_seconds: Optional[int] = None,
    ) -> RoundRelease:
        """Release the next round of *game_id*.

        Raises ``InsufficientLocations`` without touching any state when the
        pool minus every location already used in this game is too small.
        """
        async with self.lock_factory(game_id):
            model = await self._load_game(game_id, for_update=True)
            game = game_to_entity(model)
            await self._authorize_admin(game, user_id)
            if not game.is_active:
                raise GameNotActive()

            if game_type:
                config = self.registry.lookup_strict(game_type)
            else:
                config = self._game_type_for(game)
            count = locations_per_round or game.locations_per_round
            if time_limit_seconds is None:
                time_limit_seconds = game.time_limit_seconds

            pool = await self.pools.pool_for(config)
            used = await self.rounds.used_location_refs(game_id)
            try:
                selection = select_round_locations(pool, used, count, self.rng)
            except InsufficientLocations as exc:
                logger.warning(
                    "Round release for game %d rejected: need %d, %d available",
                    game_id,
                    exc.required,
                    exc.available,
                )
                raise

            planned = plan_round(
                game, selection, config.id, self._pool_selector(config), time_limit_seconds
            )
            round_number = planned[0].round_number
            game.release(round_number)

            try:
                async with self.session.begin_nested():
                    await self.rounds.create_batch(planned)
            except IntegrityError:
                raise ReleaseConflict() from None

            self.games.apply(game, model)
            await self.session.flush()

        logger.info(
            "Game %d: round %d released with %d locations (%s)",
            game_id,
            round_number,
            len(planned),
            config.id,
        )
        return RoundRelease(
            round_number=round_number,
            locations_in_round=len(planned),
            game_type=config.id,
        )

    async def complete_game(self, game_id: int, user_id: int) -> None:
        """End the game.  One-way; completing twice raises ``InvalidStateTransition``."""
        model = await self._load_game(game_id, for_update=True)
        game = game_to_entity(model)
        await self._authorize_admin(game, user_id)
        game.complete()
        self.games.apply(game, model)
        await self.session.flush()
        logger.info("Game %d completed after %d rounds", game_id, game.current_round)

    async def reveal_leaderboard(self, game_id: int, user_id: int) -> None:
        model = await self._load_game(game_id, for_update=True)
        await self._authorize_admin(game_to_entity(model), user_id)
        model.leaderboard_revealed = True
        await self.session.flush()

    # ── Guessing ──────────────────────────────────────────────────

    async def submit_guess(
        self,
        game_round_id: int,
        user_id: int,
        coordinate: Optional[Coordinate] = None,
        timeout: bool = False,
        time_seconds: Optional[int] = None,
    ) -> GuessResult:
        round_model = await self.rounds.get_by_id(game_round_id)
        if round_model is None:
            raise RoundNotFound()
        game = game_to_entity(await self._load_game(round_model.game_id))

        if not game.is_active:
            raise GameNotActive()
        if not is_round_released(round_model.round_number, game.current_round):
            raise RoundNotReleased()
        await self._authorize_player(game, user_id)
        if await self.guesses.get_for_user(game_round_id, user_id) is not None:
            raise AlreadyGuessed()

        game_round = round_to_entity(round_model)
        location = await self.pools.resolve(game_round.location)
        if location is None:
            logger.error(
                "Game round %d points at missing location %s:%d",
                game_round_id,
                game_round.location.source.value,
                game_round.location.id,
            )
            raise LocationNotFound()

        config = self.registry.lookup(
            game_round.game_type or effective_game_type(game.game_type, game.country)
        )
        if timeout:
            distance = self.scorer.timeout_distance(config.id)
            coordinate = None
        elif coordinate is None:
            raise InvalidGuess()
        else:
            distance = compute_distance(
                coordinate, location.coordinate, space_for(config.kind)
            )
        score = self.scorer.compute_score(distance, config.id)

        guess = GuessModel(
            game_round_id=game_round_id,
            user_id=user_id,
            latitude=coordinate.lat if coordinate else None,
            longitude=coordinate.lng if coordinate else None,
            distance_km=distance,
            time_seconds=time_seconds,
        )
        try:
            async with self.session.begin_nested():
                await self.guesses.create(guess)
        except IntegrityError:
            raise AlreadyGuessed() from None

        return GuessResult(
            guess_id=guess.id,
            distance_km=distance,
            score=score,
            target=location.coordinate,
            game_type=config.id,
            timeout=timeout,
        )

    async def hint_for_round(self, game_round_id: int, user_id: int) -> RoundHint:
        """Hint circle for a released slot; only for users with hints enabled."""
        round_model = await self.rounds.get_by_id(game_round_id)
        if round_model is None:
            raise RoundNotFound()
        game = game_to_entity(await self._load_game(round_model.game_id))
        if not is_round_released(round_model.round_number, game.current_round):
            raise RoundNotReleased()
        await self._authorize_player(game, user_id)

        user = await self.users.get_by_id(user_id)
        if user is None or not user.hint_enabled:
            raise HintsDisabled()

        game_round = round_to_entity(round_model)
        location = await self.pools.resolve(game_round.location)
        if location is None:
            logger.error("Hint requested for round %d with missing location", game_round_id)
            raise LocationNotFound()

        game_type = game_round.game_type or effective_game_type(game.game_type, game.country)
        return RoundHint(
            game_round_id=game_round_id,
            hint=self.hints.generate(location.coordinate, game_type),
        )

    # ── Read side ─────────────────────────────────────────────────

    async def game_status(self, game_id: int, user_id: int) -> GameProgress:
        model = await self._load_game(game_id)
        game = game_to_entity(model)
        await self._authorize_player(game, user_id)
        rounds = [round_to_entity(r) for r in await self.rounds.list_for_game(game_id)]
        guessed = set(await self.guesses.distances_for_user(game_id, user_id))
        return GameProgress(
            game_id=game_id,
            status=game.status,
            current_round=game.current_round,
            locations_per_round=game.locations_per_round,
            user_completed_rounds=len(completed_rounds(rounds, guessed)),
            finished=is_finished_for_user(game.current_round, rounds, guessed),
            name=game.name,
        )

    async def released_rounds(self, game_id: int, user_id: int) -> list[RoundSlot]:
        """Released slots of a game with the player's own result on each."""
        game = game_to_entity(await self._load_game(game_id))
        await self._authorize_player(game, user_id)
        default_type = self._game_type_for(game).id
        distances = await self.guesses.distances_for_user(game_id, user_id)

        slots = []
        for r in await self.rounds.list_for_game(game_id):
            if not is_round_released(r.round_number, game.current_round):
                continue
            game_type = r.game_type or default_type
            distance = distances.get(r.id)
            slots.append(
                RoundSlot(
                    game_round_id=r.id,
                    round_number=r.round_number,
                    location_index=r.location_index,
                    game_type=game_type,
                    time_limit_seconds=r.time_limit_seconds,
                    guessed=distance is not None,
                    distance_km=distance,
                    score=(
                        self.scorer.compute_score(distance, game_type)
                        if distance is not None
                        else None
                    ),
                )
            )
        return slots

    async def leaderboard(
        self, game_id: int, user_id: int, round_number: Optional[int] = None
    ) -> LeaderboardView:
        """Standings of the released rounds; members and the owner only."""
        model = await self._load_game(game_id)
        game = game_to_entity(model)
        await self._authorize_player(game, user_id)
        rows = await self.guesses.released_guesses(game_id, game.current_round)
        default_type = effective_game_type(game.game_type, game.country)

        scored = [
            ScoredGuess(
                user_id=guess.user_id,
                round_number=game_round.round_number,
                distance_km=guess.distance_km,
                score=self.scorer.compute_score(
                    guess.distance_km, game_round.game_type or default_type
                ),
            )
            for guess, game_round in rows
        ]
        slots = await self._released_slot_count(game_id, game.current_round, round_number)
        names = await self.users.names_for({s.user_id for s in scored})
        entries = build_leaderboard(
            scored, names=names, slots_expected=slots, round_number=round_number
        )
        return LeaderboardView(
            game_id=game_id,
            revealed=game.leaderboard_revealed,
            current_round=game.current_round,
            game_type=self._game_type_for(game).id,
            entries=entries,
        )

    async def _released_slot_count(
        self, game_id: int, current_round: int, round_number: Optional[int]
    ) -> int:
        rounds: list[GameRoundModel] = await self.rounds.list_for_game(game_id)
        return sum(
            1
            for r in rounds
            if is_round_released(r.round_number, current_round)
            and (round_number is None or r.round_number == round_number)
        )
