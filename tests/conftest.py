"""
Pytest configuration and fixtures
"""
import os

# Must be set before leadbook is imported: the engine is built at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("CREATE_TABLES", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leadbook.db.base_class import Base
from leadbook.db.session import get_db
from leadbook.main import app
from leadbook.models import User
from leadbook.services.rate_limit import MemoryRateLimitStore, RateLimiter, get_rate_limiter
from tests.helpers import FakeClock


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def owner(session_factory):
    async with session_factory() as session:
        user = User(email="owner@example.com", name="Owner")
        session.add(user)
        await session.commit()
        return user


@pytest_asyncio.fixture
async def other_user(session_factory):
    async with session_factory() as session:
        user = User(email="other@example.com", name="Other")
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(MemoryRateLimitStore(clock=clock))


@pytest_asyncio.fixture
async def client(session_factory, limiter):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limiter] = lambda: limiter

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
