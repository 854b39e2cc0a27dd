"""User Layout Routes — per-user dashboard layout persistence.

Invariants:
    - One layout row per user; POST upserts it
    - The layout body must be a JSON object (anything else → 400 VALIDATION_ERROR)
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.api.dependencies import require_user
from bootcamp_tracker.infrastructure.database import get_db
from bootcamp_tracker.models.user import User, UserLayout
from bootcamp_tracker.schemas.layout import LayoutRequest, LayoutResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/user/layout", tags=["layout"])


async def _layout_for(db: AsyncSession, user: User) -> UserLayout | None:
    return await db.scalar(select(UserLayout).where(UserLayout.user_id == user.id))


@router.get("", response_model=LayoutResponse)
async def get_layout(
    user: User = Depends(require_user), db: AsyncSession = Depends(get_db),
):
    row = await _layout_for(db, user)
    if row is None:
        return LayoutResponse()
    return LayoutResponse(layout=row.layout, updated_at=row.updated_at)


@router.post("", response_model=LayoutResponse)
async def save_layout(
    body: LayoutRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    row = await _layout_for(db, user)
    if row is None:
        row = UserLayout(user_id=user.id)
        db.add(row)
    row.layout = body.layout
    row.updated_at = datetime.now(timezone.utc)
    await db.commit()
    logger.info("Saved dashboard layout", extra={"user_id": str(user.id)})
    return LayoutResponse(layout=row.layout, updated_at=row.updated_at)
