from typing import Any, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from backend.config.settings import Settings, get_settings


class Base(DeclarativeBase):
    """Declarative base for the queue tables."""


def engine_options(settings: Settings) -> dict[str, Any]:
    """Engine keyword arguments for the configured database URL."""
    options: dict[str, Any] = {"echo": settings.db_echo}
    # SQLite has no pool sizing knobs
    if settings.database_url.startswith("sqlite"):
        return options
    return {
        **options,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
        "pool_pre_ping": True,
    }


class Database:
    """Owns the async engine and the session factory bound to it.

    The API shares one instance per process; each worker process builds its
    own and disposes of it on shutdown.
    """

    def __init__(self, settings: Settings):
        self.engine = create_async_engine(settings.database_url, **engine_options(settings))
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine, expire_on_commit=False
        )

    async def close(self) -> None:
        await self.engine.dispose()


_database: Database | None = None


def get_database(settings: Settings = Depends(get_settings)) -> Database:
    global _database
    if _database is None:
        _database = Database(settings)
    return _database


async def get_session(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session, rolled back if the request fails."""
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
