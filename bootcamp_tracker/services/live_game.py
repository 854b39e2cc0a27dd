"""Live Game Lookups — current champion of a tracked player and ad-hoc role inference.

Invariants:
    - Only games with an active status are considered
    - A linked user copy falls back to its canonical default bootcamper's game
    - Missing game, lobby or participant yields nulls, never an error
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.core.domain_types import ACTIVE_GAME_STATUSES, Position
from bootcamp_tracker.core.errors import ExternalAPIError, ValidationFailedError
from bootcamp_tracker.core.role_identification import identify_roles
from bootcamp_tracker.infrastructure.static_data import StaticDataClient
from bootcamp_tracker.models.bootcamper import Bootcamper
from bootcamp_tracker.models.game import Game
from bootcamp_tracker.services.playrate_service import load_playrates

logger = logging.getLogger(__name__)

_EMPTY = {"champion_id": None, "champion_name": None}


async def latest_active_game(db: AsyncSession, bootcamper_id: uuid.UUID) -> Game | None:
    return await db.scalar(
        select(Game)
        .where(Game.bootcamper_id == bootcamper_id, Game.status.in_(ACTIVE_GAME_STATUSES))
        .order_by(Game.started_at.desc())
        .limit(1)
    )


async def _find_bootcamper(
    db: AsyncSession, bootcamper_id: uuid.UUID | None, puuid: str | None,
) -> Bootcamper | None:
    if bootcamper_id is not None:
        return await db.get(Bootcamper, bootcamper_id)
    return await db.scalar(select(Bootcamper).where(Bootcamper.puuid == puuid).limit(1))


async def current_champion(
    db: AsyncSession,
    static_data: StaticDataClient,
    bootcamper_id: uuid.UUID | None = None,
    puuid: str | None = None,
) -> dict:
    if bootcamper_id is None and not puuid:
        raise ValidationFailedError("bootcamper_id or puuid required")

    bootcamper = await _find_bootcamper(db, bootcamper_id, puuid)
    if bootcamper is None:
        return dict(_EMPTY)

    game = await latest_active_game(db, bootcamper.id)
    if game is None and bootcamper.linked_to_default_id:
        game = await latest_active_game(db, bootcamper.linked_to_default_id)
    if game is None or not game.match_data:
        return dict(_EMPTY)

    participants = game.match_data.get("participants") or []
    target = puuid or bootcamper.puuid
    participant = next((p for p in participants if p.get("puuid") == target), None)
    if participant is None:
        participant = next(
            (p for p in participants if p.get("summonerName") == bootcamper.summoner_name),
            None,
        )
    if participant is None:
        return dict(_EMPTY)

    champion_id = participant.get("championId")
    champion_name = participant.get("championName")
    if not champion_name and champion_id:
        try:
            champion_name = await static_data.champion_name(champion_id)
        except ExternalAPIError as e:
            logger.warning(f"Champion name lookup failed: {e.message}")
    return {"champion_id": champion_id, "champion_name": champion_name}


async def identify_participant_roles(
    db: AsyncSession, participants: list[dict],
) -> dict[str, Position]:
    return identify_roles(participants, await load_playrates(db))
