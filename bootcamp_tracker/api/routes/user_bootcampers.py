"""User Bootcamper Routes — removing default bootcampers from a personal list."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.api.dependencies import require_user
from bootcamp_tracker.infrastructure.database import get_db
from bootcamp_tracker.models.user import User
from bootcamp_tracker.services import bootcamper_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/user-bootcampers", tags=["bootcampers"])


@router.delete("/{association_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_bootcamper(
    association_id: UUID,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Owner or admin only; the default bootcamper itself is untouched."""
    await bootcamper_service.delete_association(db, user, association_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
