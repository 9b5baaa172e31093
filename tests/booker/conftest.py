"""Shared fixtures: in-memory SQLite, a cache double, and seeded users."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from booker.db.connection import create_engine, create_session_factory
from booker.db.models import Base, User
from booker.services.auth_service import hash_password

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class MemoryCache:
    """In-memory double that mimics :class:`booker.cache.CacheClient`."""

    def __init__(self) -> None:
        self.store: dict[str, object] = {}
        self.deleted: list[str] = []

    async def get_json(self, key: str) -> object | None:
        return self.store.get(key)

    async def set_json(self, key: str, value: object, ttl: int | None = None) -> None:
        self.store[key] = value

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self.store.pop(key, None)
            self.deleted.append(key)


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Yield an in-memory SQLite engine with freshly created tables."""

    pytest.importorskip("aiosqlite")
    db_engine = create_engine(TEST_DATABASE_URL)
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as db_session:
        yield db_session
        if db_session.in_transaction():
            await db_session.rollback()


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def make_user(
    session: AsyncSession,
) -> Callable[..., Awaitable[User]]:
    """Insert a user with a low-cost bcrypt hash and return the ORM row."""

    async def _make_user(username: str = "bob", password: str = "secret") -> User:
        user = User(username=username, password=hash_password(password, rounds=4))
        session.add(user)
        await session.flush()
        return user

    return _make_user
