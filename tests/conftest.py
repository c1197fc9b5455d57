"""
Shared test fixtures for the competitor analysis backend test suite.

The suite runs against an in-memory SQLite database through ``aiosqlite``
(declared in ``pyproject.toml`` under ``[project.optional-dependencies] dev``)
and an in-memory stand-in for the async Redis client, so no PostgreSQL or
Redis server is needed.
"""

from __future__ import annotations

import fnmatch
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.dialects.postgresql import UUID as PG_UUID, JSONB

from app.database import Base, get_db  # noqa: E402
from app.models.user import User  # noqa: E402
from app.utils.security import create_access_token  # noqa: E402

# Import all models so Base.metadata has every table registered.
import app.models  # noqa: F401, E402

# ---------------------------------------------------------------------------
# Async SQLite engine (in-memory, shared across a single test run)
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    # SQLite needs ``check_same_thread=False`` when used with async.
    connect_args={"check_same_thread": False},
)

TestingSessionLocal = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


@event.listens_for(engine_test.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign keys for the SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Register compile-time overrides so PG-specific types get rendered as
# something SQLite understands.
from sqlalchemy.ext.compiler import compiles

@compiles(PG_UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "CHAR(32)"

@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


# ---------------------------------------------------------------------------
# In-memory Redis
# ---------------------------------------------------------------------------


class FakeRedis:
    """
    The subset of ``redis.asyncio.Redis`` used by the competitor cache and the
    rate limiter, backed by dicts. TTLs are recorded but never enforced.
    Set ``fail = True`` to make every call raise a connection error.
    """

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("Connection refused")

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def set(self, key, value):
        self._check()
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        self.ttls[key] = int(ttl)
        return True

    async def mget(self, keys):
        self._check()
        return [self.store.get(k) for k in keys]

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None or self.zsets.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def exists(self, *keys):
        self._check()
        return sum(1 for k in keys if k in self.store)

    async def incrby(self, key, amount=1):
        self._check()
        value = int(self.store.get(key) or 0) + amount
        self.store[key] = str(value)
        return value

    async def scan_iter(self, match="*", count=None):
        self._check()
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def zremrangebyscore(self, key, low, high):
        zset = self.zsets.setdefault(key, {})
        stale = [m for m, score in zset.items() if low <= score <= high]
        for member in stale:
            del zset[member]
        return len(stale)

    async def zcard(self, key):
        return len(self.zsets.get(key, {}))

    async def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def zrem(self, key, *members):
        zset = self.zsets.get(key, {})
        return sum(1 for m in members if zset.pop(m, None) is not None)

    async def expire(self, key, seconds):
        self.ttls[key] = int(seconds)
        return True

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def close(self):
        pass


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.calls = []

    def __getattr__(self, name):
        method = getattr(self.redis, name)

        def queue(*args, **kwargs):
            self.calls.append((method, args, kwargs))
            return self

        return queue

    async def execute(self):
        self.redis._check()
        results = [await method(*args, **kwargs) for method, args, kwargs in self.calls]
        self.calls = []
        return results


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


# ---------------------------------------------------------------------------
# Collected competitor data builders
# ---------------------------------------------------------------------------


def make_post(index: int = 0, likes: int = 10, comments: int = 2, shares: int = 1, **overrides) -> dict:
    created = datetime.now(timezone.utc) - timedelta(hours=index * 6 + 1)
    post = {
        "id": f"post-{index}",
        "text": f"Post number {index} #launch",
        "likes": likes,
        "comments": comments,
        "shares": shares,
        "views": 0,
        "created_at": created.isoformat(),
        "url": f"https://twitter.com/i/web/status/{index}",
        "media_type": None,
        "has_media": False,
        "is_reshare": False,
    }
    post.update(overrides)
    return post


def make_collected(profile_url: str, platform: str = "twitter", username: str = "acme", posts: int = 12) -> dict:
    """A successful collection result in the collector's output shape."""
    sample = [make_post(i) for i in range(posts)]
    return {
        "profile_url": profile_url,
        "profile": {
            "id": "42",
            "platform": platform,
            "username": username,
            "profile_url": profile_url,
            "type": None,
            "display_name": username.title(),
            "followers": 1000,
            "following": 10,
            "posts_count": 500,
            "verified": False,
            "bio": None,
            "profile_image": None,
            "website": None,
        },
        "content": {
            "posts": sample,
            "total_posts": posts,
            "average_posts_per_week": round(posts / 30 * 7, 2),
            "content_types": {"text": posts},
            "top_hashtags": [{"tag": "#launch", "count": posts}],
            "posting_schedule": {"best_hours": [], "best_days": []},
        },
        "engagement": {
            "average_likes": 10,
            "average_comments": 2,
            "average_shares": 1,
            "average_engagement": 13,
            "total_engagement": 13 * posts,
            "engagement_rate": 1.3,
            "engagement_trend": "stable",
        },
        "data_quality": {
            "score": 100,
            "level": "high",
            "factors": [
                "profile_data_available",
                "content_data_available",
                "sufficient_content_sample",
                "engagement_data_available",
            ],
        },
        "collected_at": datetime.now(timezone.utc).isoformat(),
    }


def make_failed(profile_url: str, error: str = "[twitter] profile not found", error_type: str = "ProfileNotFoundError") -> dict:
    return {
        "profile_url": profile_url,
        "error": error,
        "error_type": error_type,
        "collected_at": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Database / HTTP fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="session")
async def setup_database():
    """Create all tables once per test session, then drop them at teardown."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine_test.dispose()


@pytest_asyncio.fixture()
async def db_session(setup_database) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a transactional database session that rolls back after each test,
    keeping every test isolated.
    """
    async with engine_test.connect() as conn:
        transaction = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


@pytest_asyncio.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    FastAPI test client that uses ``httpx.AsyncClient`` with ``ASGITransport``.
    The ``get_db`` dependency is overridden to inject the test session so all
    requests share the same transactional session.
    """
    from app.main import app

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, email: str, role: str) -> User:
    user = User(
        id=uuid.uuid4(),
        email=email,
        full_name="Test User",
        role=role,
        is_active=True,
    )
    db_session.add(user)
    await db_session.flush()
    return user


def _headers_for(user: User) -> dict[str, str]:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def test_user(db_session: AsyncSession) -> User:
    """A regular (member) user."""
    return await _create_user(db_session, "test@example.com", "member")


@pytest_asyncio.fixture()
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@example.com", "admin")


@pytest_asyncio.fixture()
async def auth_headers(test_user: User) -> dict[str, str]:
    """
    Return an ``Authorization: Bearer <token>`` header dict for the test user.
    """
    return _headers_for(test_user)


@pytest_asyncio.fixture()
async def admin_headers(admin_user: User) -> dict[str, str]:
    return _headers_for(admin_user)
