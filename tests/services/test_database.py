"""Database Session Manager — error mapping and schema-level uniqueness.

Tests:
    - A duplicate insert committed through session() surfaces as 409 ALREADY_EXISTS
    - Other work in a failing session is rolled back
    - Usernames are unique case-insensitively at the index level
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from bootcamp_tracker.core.errors import ConflictError
from bootcamp_tracker.db.base import Base
from bootcamp_tracker.infrastructure.database import DatabaseSessionManager
from bootcamp_tracker.models.user import User


def _user(username: str, email: str) -> User:
    return User(username=username, email=email, password="x")


@pytest.fixture
async def manager(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'session.db'}")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.dispose()


async def test_duplicate_commit_maps_to_conflict(manager):
    async with manager.session() as db:
        db.add(_user("first", "same@example.com"))
        await db.commit()

    with pytest.raises(ConflictError) as exc_info:
        async with manager.session() as db:
            db.add(_user("second", "same@example.com"))
            await db.commit()

    assert exc_info.value.http_status == 409
    assert exc_info.value.code == "ALREADY_EXISTS"
    async with manager.session() as db:
        assert await db.scalar(select(func.count()).select_from(User)) == 1


async def test_health_check_reports_reachable_database(manager):
    assert await manager.health_check() is True


async def test_username_index_is_case_insensitive(test_session_factory):
    async with test_session_factory() as db:
        db.add(_user("Alice", "alice@example.com"))
        await db.commit()

    async with test_session_factory() as db:
        db.add(_user("alice", "other@example.com"))
        with pytest.raises(IntegrityError):
            await db.commit()
