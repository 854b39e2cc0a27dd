"""Service test fixtures — async DB, fake clients and a FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB session
    - db_manager patched so readiness checks hit the test DB
    - Riot, Twitch and static-data providers overridden with in-memory fakes

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
    - Users are inserted directly and authenticated with Bearer tokens, so the
      client's cookie jar never leaks one user's session into another request
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from bootcamp_tracker.api.dependencies import (
    get_riot_client, get_session_tokens, get_static_data_client, get_twitch_client,
)
from bootcamp_tracker.db.base import Base
from bootcamp_tracker.infrastructure.database import get_db, DatabaseSessionManager
from bootcamp_tracker.infrastructure.security import hash_password
from bootcamp_tracker.models.bootcamper import Bootcamper
from bootcamp_tracker.models.user import User
import bootcamp_tracker.infrastructure.database as db_module
import bootcamp_tracker.models  # noqa: F401
from bootcamp_tracker.main import app

from tests.services.fakes import TEST_PASSWORD, FakeRiot, FakeStaticData, FakeTwitch


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fake_riot():
    return FakeRiot()


@pytest.fixture
def fake_twitch():
    return FakeTwitch()


@pytest.fixture
def fake_static_data():
    return FakeStaticData()


@pytest.fixture
async def client(test_engine, test_session_factory, fake_riot, fake_twitch, fake_static_data):
    """FastAPI test client with DB and outbound clients overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_riot_client] = lambda: fake_riot
    app.dependency_overrides[get_twitch_client] = lambda: fake_twitch
    app.dependency_overrides[get_static_data_client] = lambda: fake_static_data

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def make_user(test_session_factory):
    """Insert a user; returns (user, auth headers)."""
    counter = {"n": 0}

    async def _make(username: str | None = None, is_admin: bool = False):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        async with test_session_factory() as db:
            user = User(
                username=username,
                email=f"{username.lower()}@example.com",
                password=hash_password(TEST_PASSWORD),
                is_admin=is_admin,
            )
            db.add(user)
            await db.commit()
        token = get_session_tokens().issue(user.id)
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def make_bootcamper(test_session_factory):
    """Insert a bootcamper active right now; keyword arguments override columns."""
    counter = {"n": 0}

    async def _make(**overrides) -> Bootcamper:
        counter["n"] += 1
        now = datetime.now(timezone.utc)
        fields = {
            "summoner_name": f"Player{counter['n']}",
            "riot_id": f"Player{counter['n']}#KR1",
            "puuid": f"puuid-{counter['n']}",
            "region": "kr",
            "start_date": now - timedelta(days=7),
            "planned_end_date": now + timedelta(days=30),
            "is_default": True,
        }
        fields.update(overrides)
        async with test_session_factory() as db:
            bootcamper = Bootcamper(**fields)
            db.add(bootcamper)
            await db.commit()
        return bootcamper

    return _make
