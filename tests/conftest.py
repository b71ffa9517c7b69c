"""Shared fixtures: per-test SQLite database, memory cache and an in-process client."""

import os

os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENABLE_METRICS"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_FORMAT"] = "plain"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENVIRONMENT"] = "development"
os.environ.pop("REDIS_URL", None)

import pytest
from aiocache import Cache
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import fintrek.models  # noqa: F401
from fintrek.core.database import Base, get_db
from fintrek.core.dependencies import get_cache
from fintrek.main import app
from fintrek.seed import seed_catalog


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    """A session for arranging data and checking results outside the app."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def cache():
    # The memory backend keeps its store on the class, so start and end empty
    cache = Cache(Cache.MEMORY)
    await cache.clear()
    yield cache
    await cache.clear()


@pytest.fixture
async def client(session_factory, cache):
    """Client calling the app in-process with the test database and cache."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def override_get_cache():
        return cache

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = override_get_cache

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Factory that signs a user up and returns its id, email, tokens and auth headers."""

    async def _register(email="alice@example.com", password="secret123", first_name="Alice", last_name="Smith"):
        response = await client.post("/auth/signup", json={
            "email": email,
            "password": password,
            "firstName": first_name,
            "lastName": last_name,
        })
        assert response.status_code == 201, response.text
        data = response.json()
        return {
            "uid": data["user"]["uid"],
            "email": data["user"]["email"],
            "tokens": data["tokens"],
            "headers": {"Authorization": f"Bearer {data['tokens']['accessToken']}"},
        }

    return _register


@pytest.fixture
async def user(register):
    return await register()


@pytest.fixture
async def catalog(db):
    """Default modules, daily quiz and achievements."""
    await seed_catalog(db)
    return db
