"""Auth Routes — registration, credential login, logout and password change.

Invariants:
    - Email is unique exactly (stored lower-cased); username is unique case-insensitively
    - Login accepts an email or a username; failures never reveal which part was wrong
    - Session token is set as an http-only cookie and also returned for Bearer use
    - Password hashes never appear in a response
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.api.dependencies import (
    get_current_user, get_session_tokens, require_user,
)
from bootcamp_tracker.config import get_settings
from bootcamp_tracker.core.errors import (
    AuthenticationRequiredError, ConflictError, ValidationFailedError,
)
from bootcamp_tracker.infrastructure.database import get_db
from bootcamp_tracker.infrastructure.security import (
    SessionTokens, hash_password, verify_password,
)
from bootcamp_tracker.models.user import User
from bootcamp_tracker.schemas.auth import (
    ChangePasswordRequest, LoginRequest, RegisterRequest, UserResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid email/username or password"


def _user_payload(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    if await db.scalar(select(User.id).where(User.email == body.email)):
        raise ConflictError("Email already registered", "EMAIL_TAKEN")
    if await db.scalar(select(User.id).where(
        func.lower(User.username) == body.username.lower(),
    )):
        raise ConflictError("Username already taken", "USERNAME_TAKEN")

    user = User(
        username=body.username,
        email=body.email,
        password=hash_password(body.password),
        name=body.name,
    )
    db.add(user)
    await db.commit()
    logger.info(f"Registered user {user.username}", extra={"user_id": str(user.id)})
    return {"message": "User created successfully", "user": _user_payload(user)}


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    tokens: SessionTokens = Depends(get_session_tokens),
):
    user = await db.scalar(select(User).where(or_(
        User.email == body.identifier.lower(),
        func.lower(User.username) == body.identifier.lower(),
    )).limit(1))
    if user is None or not verify_password(body.password, user.password):
        raise AuthenticationRequiredError(INVALID_CREDENTIALS)

    settings = get_settings()
    token = tokens.issue(user.id)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=not settings.is_development,
        samesite="lax",
    )
    logger.info(f"User {user.username} logged in", extra={"user_id": str(user.id)})
    return {"user": _user_payload(user), "token": token}


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(get_settings().session_cookie_name)
    return {"success": True}


@router.get("/me")
async def me(user: User | None = Depends(get_current_user)):
    if user is None:
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": _user_payload(user)}


@router.post("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    if not verify_password(body.current_password, user.password):
        raise ValidationFailedError("Current password is incorrect")
    user.password = hash_password(body.new_password)
    await db.commit()
    logger.info("Password changed", extra={"user_id": str(user.id)})
    return {"success": True, "message": "Password updated"}
