from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from backend.config.settings import Settings, get_settings
from backend.infra.database import Base, get_session
from backend.main import create_app

# Import models to ensure they're registered
from backend.v1.infra.jobs import models  # noqa: F401
from backend.v1.infra.jobs.claimer import Claimer
from backend.v1.infra.jobs.service import JobService

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> datetime:
        self.current = self.current + delta
        return self.current


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Development settings pointing at a throwaway SQLite file."""
    return Settings(
        _env_file=None,
        environment="development",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'jobs.db'}",
        jobs_worker_id="test-worker",
        jobs_poll_interval_ms=10,
        jobs_lock_ttl_s=60,
        jobs_max_attempts=10,
        email_provider="none",
        error_reporting_provider="none",
    )


@pytest.fixture
async def test_engine(settings):
    """Create a test database engine with the jobs schema."""
    engine = create_async_engine(settings.database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=test_engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def job_service(settings, clock) -> JobService:
    return JobService(settings, clock=clock)


@pytest.fixture
def claimer(session_factory, clock) -> Claimer:
    return Claimer(
        session_factory,
        worker_id="test-worker",
        lock_ttl=timedelta(seconds=60),
        clock=clock,
    )


@pytest.fixture
def app(settings, session_factory):
    """Create a test FastAPI application bound to the test database."""
    app = create_app()

    async def get_test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = get_test_session
    app.dependency_overrides[get_settings] = lambda: settings

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
