"""Live Game Routes — current champion lookup and lobby role identification."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.api.dependencies import get_static_data_client
from bootcamp_tracker.infrastructure.database import get_db
from bootcamp_tracker.infrastructure.static_data import StaticDataClient
from bootcamp_tracker.schemas.roles import IdentifyRolesRequest, IdentifyRolesResponse
from bootcamp_tracker.services import live_game

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["live"])


@router.get("/current-champ")
async def current_champ(
    bootcamper_id: UUID | None = Query(None),
    puuid: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    static_data: StaticDataClient = Depends(get_static_data_client),
):
    return await live_game.current_champion(db, static_data, bootcamper_id, puuid)


@router.post("/identify-roles", response_model=IdentifyRolesResponse)
async def identify_roles(
    body: IdentifyRolesRequest, db: AsyncSession = Depends(get_db),
):
    participants = [p.model_dump() for p in body.participants]
    roles = await live_game.identify_participant_roles(db, participants)
    return IdentifyRolesResponse(roles=roles)
