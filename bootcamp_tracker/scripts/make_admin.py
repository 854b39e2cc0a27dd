"""Grant admin — python -m bootcamp_tracker.scripts.make_admin <email-or-username>

Invariants:
    - Email matches exactly (lower-cased), username case-insensitively
    - Exit status 1 when no user matches or no argument is given
"""

import asyncio
import logging
import sys

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bootcamp_tracker.config import get_settings
from bootcamp_tracker.db.session import create_session_factory
from bootcamp_tracker.infrastructure.observability import setup_logging
from bootcamp_tracker.models.user import User

logger = logging.getLogger(__name__)


async def grant_admin(
    session_factory: async_sessionmaker[AsyncSession], identifier: str,
) -> User | None:
    """Set is_admin on the matching user. Returns the user, or None if not found."""
    identifier = identifier.strip().lower()
    async with session_factory() as db:
        user = await db.scalar(select(User).where(or_(
            User.email == identifier,
            func.lower(User.username) == identifier,
        )).limit(1))
        if user is None:
            return None
        user.is_admin = True
        await db.commit()
        return user


async def _run(identifier: str) -> int:
    engine, session_factory = create_session_factory(get_settings().database_url)
    try:
        user = await grant_admin(session_factory, identifier)
    finally:
        await engine.dispose()
    if user is None:
        logger.error(f"No user found for '{identifier}'")
        return 1
    logger.info(f"{user.username} ({user.email}) is now an admin", extra={"user_id": str(user.id)})
    return 0


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    settings = get_settings()
    setup_logging(settings.log_level, "text")
    if len(args) != 1:
        logger.error("Usage: python -m bootcamp_tracker.scripts.make_admin <email-or-username>")
        return 1
    return asyncio.run(_run(args[0]))


if __name__ == "__main__":
    sys.exit(main())
