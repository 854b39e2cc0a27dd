"""Default admin bootstrap — grants admin to DEFAULT_ADMIN_USERNAME at deploy time.

Invariants:
    - Never exits non-zero: a missing setting, missing user or database failure is
      logged and the deployment carries on
"""

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from bootcamp_tracker.config import get_settings
from bootcamp_tracker.db.session import create_session_factory
from bootcamp_tracker.infrastructure.observability import setup_logging
from bootcamp_tracker.scripts.make_admin import grant_admin

logger = logging.getLogger(__name__)


async def ensure_default_admin(username: str, database_url: str) -> bool:
    if not username:
        logger.info("DEFAULT_ADMIN_USERNAME not set, skipping admin bootstrap")
        return False
    try:
        engine, session_factory = create_session_factory(database_url)
    except (SQLAlchemyError, ImportError) as e:
        logger.warning(f"Admin bootstrap skipped, bad DATABASE_URL: {e}")
        return False
    try:
        user = await grant_admin(session_factory, username)
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Admin bootstrap skipped, database unavailable: {e}")
        return False
    finally:
        await engine.dispose()
    if user is None:
        logger.warning(f"User '{username}' not found; register it, then rerun")
        return False
    logger.info(f"Ensured {user.username} is admin", extra={"user_id": str(user.id)})
    return True


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, "text")
    asyncio.run(ensure_default_admin(settings.default_admin_username, settings.database_url))


if __name__ == "__main__":
    main()
