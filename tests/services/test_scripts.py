"""Admin scripts — granting admin by email/username and the deploy-time bootstrap."""

import pytest
from sqlalchemy import select

from bootcamp_tracker.db.base import Base
from bootcamp_tracker.db.session import create_session_factory
from bootcamp_tracker.infrastructure.security import hash_password
from bootcamp_tracker.models.user import User
from bootcamp_tracker.scripts import make_admin
from bootcamp_tracker.scripts.create_default_admin import ensure_default_admin
from bootcamp_tracker.scripts.make_admin import grant_admin


async def _is_admin(session_factory, username: str) -> bool:
    async with session_factory() as db:
        return await db.scalar(select(User.is_admin).where(User.username == username))


async def test_grant_admin_by_username_is_case_insensitive(make_user, test_session_factory):
    await make_user("Faker")
    user = await grant_admin(test_session_factory, "  fAkEr ")
    assert user is not None
    assert await _is_admin(test_session_factory, "Faker") is True


async def test_grant_admin_by_email(make_user, test_session_factory):
    await make_user("Chovy")
    assert await grant_admin(test_session_factory, "CHOVY@example.com") is not None
    assert await _is_admin(test_session_factory, "Chovy") is True


async def test_grant_admin_unknown_user(test_session_factory):
    assert await grant_admin(test_session_factory, "nobody") is None


def test_make_admin_requires_one_argument():
    assert make_admin.main([]) == 1
    assert make_admin.main(["a", "b"]) == 1


async def test_bootstrap_skips_without_username():
    assert await ensure_default_admin("", "sqlite+aiosqlite:///:memory:") is False


async def test_bootstrap_grants_admin(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'bootstrap.db'}"
    engine, session_factory = create_session_factory(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with session_factory() as db:
        db.add(User(
            username="Keria", email="keria@example.com", password=hash_password("hunter22"),
        ))
        await db.commit()
    await engine.dispose()

    assert await ensure_default_admin("keria", url) is True

    engine, session_factory = create_session_factory(url)
    assert await _is_admin(session_factory, "Keria") is True
    await engine.dispose()


async def test_bootstrap_tolerates_missing_schema(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}"
    assert await ensure_default_admin("keria", url) is False


@pytest.mark.parametrize("url", ["not a database url", "nosuchdialect://host/db"])
async def test_bootstrap_tolerates_unusable_database_url(url):
    assert await ensure_default_admin("keria", url) is False
