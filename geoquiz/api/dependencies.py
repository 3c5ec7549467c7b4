"""FastAPI dependency injection helpers."""

import random
from functools import lru_cache

import redis.asyncio as aioredis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from geoquiz.config import settings
from geoquiz.domain.game_types import GameTypeRegistry, build_default_registry
from geoquiz.infrastructure.database import async_session_factory
from geoquiz.infrastructure.locks import release_lock
from geoquiz.services.progression import ProgressionService


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@lru_cache()
def get_registry() -> GameTypeRegistry:
    """Game types are built once per process and shared read-only."""
    return build_default_registry(settings.default_game_type)


@lru_cache()
def _redis_pool() -> aioredis.ConnectionPool:
    return aioredis.ConnectionPool.from_url(settings.redis_url, decode_responses=True)


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_redis_pool())


def get_rng() -> random.Random:
    return random.Random(settings.random_seed)


async def get_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
    rng: random.Random = Depends(get_rng),
) -> ProgressionService:
    return ProgressionService(
        db,
        get_registry(),
        rng=rng,
        lock_factory=lambda game_id: release_lock(
            redis, game_id, settings.release_lock_ttl_seconds
        ),
    )
