"""Bootcamper Routes — roster CRUD, rank summaries, name refresh and Twitch subscriptions.

Invariants:
    - Static paths (/ranks, /update-names) are declared before /{bootcamper_id}
    - Reads are public; writes need a session; name refresh and subscriptions need admin
    - Routes stay thin: all roster rules live in services/bootcamper_service.py
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.api.dependencies import (
    get_current_user, get_riot_client, get_twitch_client, require_admin, require_user,
)
from bootcamp_tracker.config import get_settings
from bootcamp_tracker.core.domain_types import (
    BootcamperRole, BootcamperStatus, ListType, RiotRegion,
)
from bootcamp_tracker.infrastructure.database import get_db
from bootcamp_tracker.infrastructure.riot_client import RiotClient
from bootcamp_tracker.infrastructure.twitch_client import TwitchClient
from bootcamp_tracker.models.user import User
from bootcamp_tracker.schemas.bootcamper import (
    BootcamperCreate, BootcamperFilters, BootcamperUpdate,
)
from bootcamp_tracker.services import bootcamper_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/bootcampers", tags=["bootcampers"])


@router.get("/")
async def list_bootcampers(
    status_filter: BootcamperStatus | None = Query(None, alias="status"),
    role: BootcamperRole | None = None,
    region: RiotRegion | None = None,
    list_type: ListType = ListType.DEFAULT,
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    filters = BootcamperFilters(
        status=status_filter, role=role, region=region, list_type=list_type,
    )
    return await bootcamper_service.list_bootcampers(db, user, filters)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_bootcamper(
    body: BootcamperCreate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    riot: RiotClient | None = Depends(get_riot_client),
    twitch: TwitchClient | None = Depends(get_twitch_client),
):
    return await bootcamper_service.create_bootcamper(db, user, body, riot, twitch)


@router.get("/ranks")
async def bootcamper_ranks(
    list_type: ListType = ListType.DEFAULT,
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    riot: RiotClient | None = Depends(get_riot_client),
):
    return await bootcamper_service.rank_summaries(db, user, list_type, riot)


@router.post("/update-names")
async def update_names(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    riot: RiotClient | None = Depends(get_riot_client),
):
    return await bootcamper_service.update_all_names(db, riot)


@router.get("/{bootcamper_id}")
async def get_bootcamper(bootcamper_id: UUID, db: AsyncSession = Depends(get_db)):
    return await bootcamper_service.get_bootcamper_detail(db, bootcamper_id)


@router.patch("/{bootcamper_id}")
async def update_bootcamper(
    bootcamper_id: UUID,
    body: BootcamperUpdate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    twitch: TwitchClient | None = Depends(get_twitch_client),
):
    return await bootcamper_service.update_bootcamper(db, user, bootcamper_id, body, twitch)


@router.delete("/{bootcamper_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bootcamper(
    bootcamper_id: UUID,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await bootcamper_service.delete_bootcamper(db, user, bootcamper_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{bootcamper_id}/twitch-subscribe")
async def subscribe_twitch(
    bootcamper_id: UUID,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    twitch: TwitchClient | None = Depends(get_twitch_client),
):
    settings = get_settings()
    return await bootcamper_service.subscribe_to_streams(
        db, bootcamper_id, twitch,
        callback_url=settings.twitch_callback_url,
        secret=settings.twitch_eventsub_secret,
        development=settings.is_development,
    )
