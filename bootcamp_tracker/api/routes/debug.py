"""Debug Routes — session, configuration, stored lobby and rank introspection.

Invariants:
    - env-check is admin-only and reports presence of secrets, never their values
    - Puuids are truncated in every debug payload
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.api.dependencies import get_current_user, get_riot_client, require_admin
from bootcamp_tracker.config import get_settings
from bootcamp_tracker.core.domain_types import ACTIVE_GAME_STATUSES, QueueType
from bootcamp_tracker.core.errors import ValidationFailedError
from bootcamp_tracker.core.formatting import truncate_puuid
from bootcamp_tracker.core.rank import find_queue_entry
from bootcamp_tracker.infrastructure.database import get_db
from bootcamp_tracker.infrastructure.riot_client import RiotClient, riot_region
from bootcamp_tracker.models.bootcamper import Bootcamper
from bootcamp_tracker.models.game import Game
from bootcamp_tracker.models.user import User
from bootcamp_tracker.services.bootcamper_service import require_riot

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/debug", tags=["debug"])

_SAMPLE_FIELDS = (
    "summonerName", "riotIdGameName", "riotIdTagline", "championId",
    "rank", "tier", "division", "leaguePoints", "spell1Id", "spell2Id", "teamId",
    "inferredRole",
)


@router.get("/session")
async def session_info(user: User | None = Depends(get_current_user)):
    session = None
    if user is not None:
        session = {"user": {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "is_admin": user.is_admin,
        }}
    return {"session": session, "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/env-check")
async def env_check(_admin: User = Depends(require_admin)):
    settings = get_settings()
    config = {
        "TWITCH_CLIENT_ID": bool(settings.twitch_client_id),
        "TWITCH_CLIENT_SECRET": bool(settings.twitch_client_secret),
        "TWITCH_CALLBACK_URL": settings.twitch_callback_url or "NOT_SET",
        "TWITCH_EVENTSUB_SECRET": bool(settings.twitch_eventsub_secret),
        "ENVIRONMENT": settings.environment,
    }
    required = {
        "TWITCH_CLIENT_ID": settings.twitch_client_id,
        "TWITCH_CLIENT_SECRET": settings.twitch_client_secret,
        "TWITCH_CALLBACK_URL": settings.twitch_callback_url,
        "TWITCH_EVENTSUB_SECRET": settings.twitch_eventsub_secret,
    }
    return {
        "message": "Environment variables check",
        "config": config,
        "warnings": [f"{name} is not set" for name, value in required.items() if not value],
    }


def _sample(participant: dict | None) -> dict | None:
    if participant is None:
        return None
    return {
        "all_fields": list(participant.keys()),
        "puuid": truncate_puuid(participant.get("puuid")),
        **{key: participant.get(key) for key in _SAMPLE_FIELDS},
    }


@router.get("/game-data")
async def game_data(db: AsyncSession = Depends(get_db)):
    rows = (await db.execute(
        select(Game, Bootcamper.summoner_name)
        .join(Bootcamper, Game.bootcamper_id == Bootcamper.id)
        .where(Game.status.in_(ACTIVE_GAME_STATUSES))
        .order_by(Game.started_at.desc())
        .limit(5)
    )).all()

    games = []
    for game, summoner_name in rows:
        participants = (game.match_data or {}).get("participants") or []
        games.append({
            "bootcamper": summoner_name,
            "game_id": game.riot_game_id,
            "has_match_data": bool(game.match_data),
            "participant_count": len(participants),
            "sample_participant": _sample(participants[0] if participants else None),
        })
    return {"message": "Live games debug data", "count": len(games), "games": games}


@router.get("/test-rank")
async def test_rank(
    puuid: str | None = Query(None),
    region: str = Query("kr"),
    riot: RiotClient | None = Depends(get_riot_client),
):
    if not puuid:
        raise ValidationFailedError("puuid parameter is required")
    platform = riot_region(region).value
    entries = await require_riot(riot).get_league_entries(platform, puuid)
    solo = find_queue_entry(entries, QueueType.SOLO)
    formatted = None
    if solo:
        formatted = {
            "rank": f"{solo['tier']} {solo['rank']}",
            "tier": solo["tier"],
            "division": solo["rank"],
            "league_points": solo.get("leaguePoints"),
            "wins": solo.get("wins"),
            "losses": solo.get("losses"),
        }
    logger.info(f"Rank test for {truncate_puuid(puuid)} in {platform}: {len(entries)} entries")
    return {
        "puuid": truncate_puuid(puuid),
        "region": platform,
        "all_ranks": entries,
        "solo_queue": solo,
        "formatted": formatted,
    }
