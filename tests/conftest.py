"""
Pytest fixtures for chirpy-auth tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chirpy_auth.config import Settings
from chirpy_auth.database import build_engine, build_session_maker, close_db, init_db
from chirpy_auth.kernel.identity.identity_service import IdentityService
from chirpy_auth.kernel.identity.jwt import SessionTokenService
from chirpy_auth.kernel.identity.password import PasswordHasher
from chirpy_auth.kernel.identity.refresh_tokens import RefreshTokenManager
from chirpy_auth.kernel.identity.token_store import (
    InMemoryRefreshTokenStore,
    SqlAlchemyRefreshTokenStore,
)

TEST_SECRET = "test-secret-key-for-testing-only"
TEST_API_KEY = "f271c81ff7084ee5b99a5091b42d486e"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at a fixed UTC instant."""
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def hasher() -> PasswordHasher:
    """Low-cost hasher so tests stay fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite database."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'chirpy.db'}",
        jwt_secret=TEST_SECRET,
        api_key=TEST_API_KEY,
        bcrypt_rounds=4,
    )


@pytest.fixture
def memory_store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture
def refresh_manager(memory_store: InMemoryRefreshTokenStore, clock: FakeClock) -> RefreshTokenManager:
    """Refresh token manager over the in-memory store with a fake clock."""
    return RefreshTokenManager(memory_store, clock=clock)


@pytest.fixture
def session_tokens(clock: FakeClock) -> SessionTokenService:
    """Session token service with a fake clock."""
    return SessionTokenService(clock=clock)


@pytest.fixture
def identity_service(
    test_settings: Settings,
    memory_store: InMemoryRefreshTokenStore,
) -> IdentityService:
    """Identity service over the in-memory store."""
    return IdentityService(test_settings, memory_store)


@pytest_asyncio.fixture
async def session_maker(test_settings: Settings) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables in a temporary SQLite file and yield a session factory."""
    engine = build_engine(test_settings.database_url)
    await init_db(engine)

    yield build_session_maker(engine)

    await close_db(engine)


@pytest.fixture
def sql_store(session_maker: async_sessionmaker[AsyncSession]) -> SqlAlchemyRefreshTokenStore:
    return SqlAlchemyRefreshTokenStore(session_maker)


@pytest.fixture
def auth_headers():
    """Build an Authorization header mapping."""
    def _build(credential: str, scheme: str = "Bearer") -> dict:
        return {"Authorization": f"{scheme} {credential}"}
    return _build
