"""
Database wiring: one async engine per process.

Production talks to PostgreSQL through ``asyncpg``; the tests build their
own in-memory SQLite engine and only borrow ``Base`` from here.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from geoquiz.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_pool_size,
    pool_pre_ping=True,
)

# rows loaded during a request stay readable after the commit in get_db
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base shared by the game, round, guess and pool tables."""


async def dispose_engine() -> None:
    await engine.dispose()
