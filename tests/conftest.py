"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  Every test gets a fresh engine with the
production models; ``FOR UPDATE`` is a no-op on SQLite and the unique
constraints behave as on PostgreSQL.
"""

import random
from types import SimpleNamespace
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from geoquiz.domain.enums import GameMode, GameStatus, MemberRole
from geoquiz.domain.game_types import build_default_registry
from geoquiz.infrastructure.database import Base
from geoquiz.infrastructure.models import (
    GameModel,
    GameRoundModel,
    GroupMemberModel,
    GroupModel,
    ImageLocationModel,
    LocationModel,
    UserModel,
    WorldLocationModel,
)
from geoquiz.services.progression import ProgressionService


TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

SWISS_TOWNS = [
    ("Bern", 46.9480, 7.4474),
    ("Zürich", 47.3769, 8.5417),
    ("Genf", 46.2044, 6.1432),
    ("Basel", 47.5596, 7.5886),
    ("Lugano", 46.0037, 8.9511),
    ("Luzern", 47.0502, 8.3093),
    ("St. Gallen", 47.4245, 9.3767),
    ("Chur", 46.8508, 9.5320),
    ("Sion", 46.2331, 7.3606),
    ("Zermatt", 46.0207, 7.7491),
    ("Scuol", 46.7967, 10.2980),
    ("Delémont", 47.3649, 7.3445),
]

SLOVENIAN_TOWNS = [
    ("Ljubljana", 46.0569, 14.5058),
    ("Maribor", 46.5547, 15.6459),
    ("Koper", 45.5469, 13.7294),
]

CAPITALS = [
    ("Paris", 48.8566, 2.3522),
    ("Tokyo", 35.6762, 139.6503),
    ("Canberra", -35.2809, 149.1300),
]


# ── Engine / session ──────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test, schema from the production models."""
    test_engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy
    # emit BEGIN itself.
    @event.listens_for(test_engine.sync_engine, "connect")
    def _no_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(test_engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def service(db_session, registry):
    return ProgressionService(db_session, registry, rng=random.Random(7))


@pytest.fixture
def fake_redis():
    """Redis stand-in whose lock is always free."""
    client = AsyncMock()
    client.set = AsyncMock(return_value=True)
    client.eval = AsyncMock(return_value=1)
    return client


# ── Seed data ─────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def players(db_session) -> SimpleNamespace:
    """A group with one admin and one member, plus an outsider.

    Only the member has hints enabled.
    """
    admin = UserModel(name="Anna", email="anna@example.com", hint_enabled=False)
    member = UserModel(name="Luka", email="luka@example.com", hint_enabled=True)
    outsider = UserModel(name="Marco", email="marco@example.com", hint_enabled=True)
    db_session.add_all([admin, member, outsider])
    await db_session.flush()

    group = GroupModel(name="Stammtisch", invite_code="ALPS2026", owner_id=admin.id)
    db_session.add(group)
    await db_session.flush()
    db_session.add_all(
        [
            GroupMemberModel(group_id=group.id, user_id=admin.id, role=MemberRole.ADMIN),
            GroupMemberModel(group_id=group.id, user_id=member.id, role=MemberRole.MEMBER),
        ]
    )
    await db_session.commit()
    return SimpleNamespace(
        admin_id=admin.id,
        member_id=member.id,
        outsider_id=outsider.id,
        group_id=group.id,
    )


@pytest.fixture
def add_swiss_locations(db_session):
    """Add the first *count* Swiss towns to the country pool; returns their ids."""

    async def _add(count: int = 5, offset: int = 0) -> list[int]:
        rows = [
            LocationModel(name=name, latitude=lat, longitude=lng, country="Switzerland")
            for name, lat, lng in SWISS_TOWNS[offset : offset + count]
        ]
        db_session.add_all(rows)
        await db_session.commit()
        return [row.id for row in rows]

    return _add


@pytest_asyncio.fixture
async def other_pools(db_session) -> SimpleNamespace:
    """Slovenian towns, world capitals and garden spots."""
    slovenian = [
        LocationModel(name=name, latitude=lat, longitude=lng, country="Slovenia")
        for name, lat, lng in SLOVENIAN_TOWNS
    ]
    capitals = [
        WorldLocationModel(name=name, latitude=lat, longitude=lng, category="capitals")
        for name, lat, lng in CAPITALS
    ]
    garden = [
        ImageLocationModel(name="Teich", x=0.0, y=0.0, image_map_id="garten"),
        ImageLocationModel(name="Kompost", x=1180.0, y=1320.0, image_map_id="garten"),
    ]
    db_session.add_all([*slovenian, *capitals, *garden])
    await db_session.commit()
    return SimpleNamespace(
        slovenian_ids=[r.id for r in slovenian],
        capital_ids=[r.id for r in capitals],
        garden_ids=[r.id for r in garden],
    )


@pytest.fixture
def make_game(db_session, players):
    """Insert an active group game directly, bypassing the service."""

    async def _make(**overrides) -> GameModel:
        values = dict(
            mode=GameMode.GROUP,
            group_id=players.group_id,
            name="Herbstrunde",
            country="switzerland",
            game_type="country:switzerland",
            locations_per_round=5,
            status=GameStatus.ACTIVE,
            current_round=0,
            leaderboard_revealed=False,
        )
        values.update(overrides)
        game = GameModel(**values)
        db_session.add(game)
        await db_session.commit()
        return game

    return _make


@pytest.fixture
def load_game(db_session):
    """Re-read a game row, bypassing the identity map."""

    async def _load(game_id: int) -> GameModel:
        result = await db_session.execute(
            select(GameModel)
            .where(GameModel.id == game_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    return _load


@pytest.fixture
def load_rounds(db_session):
    async def _load(game_id: int) -> list[GameRoundModel]:
        result = await db_session.execute(
            select(GameRoundModel)
            .where(GameRoundModel.game_id == game_id)
            .order_by(GameRoundModel.round_number, GameRoundModel.location_index)
        )
        return list(result.scalars().all())

    return _load
