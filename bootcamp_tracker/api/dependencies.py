"""API Dependencies — current user resolution and shared outbound clients.

Invariants:
    - A session token is read from the session cookie first, then Authorization: Bearer
    - An invalid, expired or orphaned token resolves to an anonymous caller (None)
    - require_user → 401 AUTHENTICATION_REQUIRED; require_admin → 403 PERMISSION_DENIED
    - Client providers return one shared instance per process, or None when unconfigured

Design Decisions:
    - Clients exposed as dependencies so tests swap them via app.dependency_overrides
"""

from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.config import Settings, get_settings
from bootcamp_tracker.core.errors import AuthenticationRequiredError, PermissionDeniedError
from bootcamp_tracker.infrastructure.clients import (
    build_riot_client, build_static_data_client, build_twitch_client,
)
from bootcamp_tracker.infrastructure.database import get_db
from bootcamp_tracker.infrastructure.riot_client import RiotClient
from bootcamp_tracker.infrastructure.security import SessionTokens
from bootcamp_tracker.infrastructure.static_data import StaticDataClient
from bootcamp_tracker.infrastructure.twitch_client import TwitchClient
from bootcamp_tracker.models.user import User

BEARER_PREFIX = "bearer "


@lru_cache
def get_session_tokens() -> SessionTokens:
    settings = get_settings()
    return SessionTokens(settings.session_secret_key, settings.session_max_age_seconds)


def read_token(request: Request, settings: Settings) -> str | None:
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith(BEARER_PREFIX):
        return auth[len(BEARER_PREFIX):].strip() or None
    return None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    tokens: SessionTokens = Depends(get_session_tokens),
) -> User | None:
    user_id = tokens.read(read_token(request, get_settings()))
    if user_id is None:
        return None
    return await db.get(User, user_id)


async def require_user(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise AuthenticationRequiredError()
    return user


async def require_admin(user: User = Depends(require_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Forbidden - admin access required")
    return user


# ─── Outbound clients ───────────────────────────────────────────

@lru_cache
def get_riot_client() -> RiotClient | None:
    return build_riot_client(get_settings())


@lru_cache
def get_twitch_client() -> TwitchClient | None:
    return build_twitch_client(get_settings())


@lru_cache
def get_static_data_client() -> StaticDataClient:
    return build_static_data_client(get_settings())
