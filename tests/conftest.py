"""Pytest configuration and fixtures."""

import sys
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.config import Settings
from infrastructure.auth.jwt_provider import JWTIdentityProvider
from infrastructure.database.change_feed import DocumentChangeFeed
from infrastructure.database.session import create_engine, create_session_factory, init_models
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.location.sensor import HostPositionSensor

# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_APP_ID = "run-realm-test"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        app_id=TEST_APP_ID,
        database_url=TEST_DATABASE_URL,
        jwt_secret_key="test-secret-key",
        log_format="console",
    )


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory document store per test."""
    engine = create_engine(TEST_DATABASE_URL)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def change_feed() -> DocumentChangeFeed:
    return DocumentChangeFeed()


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
    change_feed: DocumentChangeFeed,
) -> Callable[[], SQLAlchemyUnitOfWork]:
    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory, change_feed)

    return factory


@pytest.fixture
def identity() -> JWTIdentityProvider:
    """Create identity provider for testing."""
    return JWTIdentityProvider(
        secret_key="test-secret-key",
        issuer=TEST_APP_ID,
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def sensor() -> HostPositionSensor:
    return HostPositionSensor()
