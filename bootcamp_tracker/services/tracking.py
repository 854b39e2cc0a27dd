"""Tracking Jobs — spectator, match, name, stream and rank reconciliation per bootcamper.

Invariants:
    - Each job loads its bootcamper fresh and commits its own changes
    - A missing bootcamper (deleted between schedule and run) is a silent no-op
    - Lobby enrichment happens once per game: only when the game id changes
    - Per-participant rank failures degrade to "Unranked"; they never fail the job
    - Riot errors on rank jobs propagate before any column is written, so known rank
      data is never wiped by an API failure
    - Stream state writes are shared by the EventSub webhook and the Helix poll

Design Decisions:
    - Jobs are plain async functions over (db, client, id): the worker owns scheduling,
      the API reuses refresh_summoner_name for the manual update-names route
    - GameEnded returned to the caller instead of enqueuing follow-ups here: keeps the
      delayed match/rank fetches a worker concern
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.core.domain_types import (
    ACTIVE_GAME_STATUSES, BootcamperStatus, GameStatus, Position, QueueType,
)
from bootcamp_tracker.core.errors import ExternalAPIError
from bootcamp_tracker.core.formatting import from_epoch_ms, parse_timestamp, stream_url
from bootcamp_tracker.core.rank import (
    CURRENT_RANK_COLUMNS, PEAK_COLUMNS,
    compute_current_rank_updates, compute_peak_updates,
    find_queue_entry, format_solo_rank,
)
from bootcamp_tracker.core.role_identification import identify_roles
from bootcamp_tracker.infrastructure.riot_client import RiotClient
from bootcamp_tracker.infrastructure.twitch_client import TwitchClient
from bootcamp_tracker.models.bootcamper import Bootcamper
from bootcamp_tracker.models.game import Game
from bootcamp_tracker.models.twitch_stream import TwitchStream
from bootcamp_tracker.services.playrate_service import load_playrates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameEnded:
    """Returned by check_spectator when a tracked game just finished."""
    bootcamper_id: uuid.UUID
    riot_game_id: str
    region: str


def active_bootcamper_clause(now: datetime):
    """Bootcampers currently in bootcamp: started, and planned or actual end not passed."""
    return and_(
        Bootcamper.start_date <= now,
        or_(Bootcamper.planned_end_date >= now, Bootcamper.actual_end_date >= now),
    )


def _apply(target: object, updates: dict[str, object]) -> None:
    for key, value in updates.items():
        setattr(target, key, value)


# ─── Spectator ──────────────────────────────────────────────────

async def _participant_rank(riot: RiotClient, region: str, participant: dict) -> dict:
    if not participant.get("puuid"):
        return {**participant, **format_solo_rank(None)}
    try:
        entries = await riot.get_league_entries(region, participant["puuid"])
    except ExternalAPIError as e:
        logger.warning(f"Rank lookup failed for lobby participant: {e.message}")
        entries = []
    return {**participant, **format_solo_rank(find_queue_entry(entries, QueueType.SOLO))}


async def enrich_lobby(
    db: AsyncSession, riot: RiotClient, region: str, active_game: dict,
) -> dict:
    """Spectator payload with solo rank and inferred role on every participant."""
    participants = await asyncio.gather(*(
        _participant_rank(riot, region, p) for p in active_game.get("participants", [])
    ))
    roles = identify_roles(
        [p for p in participants if p.get("puuid")], await load_playrates(db),
    )
    for p in participants:
        p["inferredRole"] = roles.get(p.get("puuid"), Position.MIDDLE).value
    return {**active_game, "participants": list(participants)}


async def _complete_active_games(
    db: AsyncSession, bootcamper_id: uuid.UUID, riot_game_id: str | None, now: datetime,
) -> None:
    stmt = update(Game).where(
        Game.bootcamper_id == bootcamper_id,
        Game.status.in_(ACTIVE_GAME_STATUSES),
    )
    if riot_game_id:
        stmt = stmt.where(Game.riot_game_id == riot_game_id)
    await db.execute(stmt.values(status=GameStatus.COMPLETED.value, ended_at=now))


async def check_spectator(
    db: AsyncSession, riot: RiotClient, bootcamper_id: uuid.UUID,
) -> GameEnded | None:
    bootcamper = await db.get(Bootcamper, bootcamper_id)
    if bootcamper is None or not bootcamper.puuid:
        return None

    active = await riot.get_active_game(bootcamper.region, bootcamper.puuid)
    if active:
        game_id = str(active["gameId"])
        is_new = (
            bootcamper.status != BootcamperStatus.IN_GAME.value
            or bootcamper.last_game_id != game_id
        )
        if not is_new:
            return None

        match_data = await enrich_lobby(db, riot, bootcamper.region, active)
        bootcamper.status = BootcamperStatus.IN_GAME.value
        bootcamper.last_game_id = game_id

        game = await db.scalar(select(Game).where(
            Game.riot_game_id == game_id, Game.bootcamper_id == bootcamper.id,
        ))
        if game is None:
            db.add(Game(
                riot_game_id=game_id,
                bootcamper_id=bootcamper.id,
                started_at=from_epoch_ms(active.get("gameStartTime"))
                or datetime.now(timezone.utc),
                status=GameStatus.IN_PROGRESS.value,
                match_data=match_data,
            ))
        else:
            game.status = GameStatus.IN_PROGRESS.value
            game.match_data = match_data
        await db.commit()
        logger.info(
            f"{bootcamper.summoner_name} entered game {game_id}",
            extra={"bootcamper_id": str(bootcamper.id), "riot_game_id": game_id},
        )
        return None

    if bootcamper.status != BootcamperStatus.IN_GAME.value:
        return None

    last_game_id = bootcamper.last_game_id
    bootcamper.status = BootcamperStatus.IDLE.value
    await _complete_active_games(db, bootcamper.id, last_game_id, datetime.now(timezone.utc))
    await db.commit()
    logger.info(
        f"{bootcamper.summoner_name} finished game {last_game_id}",
        extra={"bootcamper_id": str(bootcamper.id), "riot_game_id": last_game_id},
    )
    if not last_game_id:
        return None
    return GameEnded(bootcamper.id, last_game_id, bootcamper.region)


async def cleanup_stale_games(db: AsyncSession, riot: RiotClient) -> int:
    """Set idle every in_game bootcamper with no live game. Returns how many were fixed."""
    rows = (await db.execute(
        select(Bootcamper).where(Bootcamper.status == BootcamperStatus.IN_GAME.value)
    )).scalars().all()
    now = datetime.now(timezone.utc)
    cleaned = 0
    for bootcamper in rows:
        try:
            active = await riot.get_active_game(bootcamper.region, bootcamper.puuid)
        except ExternalAPIError as e:
            logger.warning(
                f"Stale-game check failed: {e.message}",
                extra={"bootcamper_id": str(bootcamper.id)},
            )
            continue
        if active:
            continue
        bootcamper.status = BootcamperStatus.IDLE.value
        await _complete_active_games(db, bootcamper.id, bootcamper.last_game_id, now)
        cleaned += 1
    await db.commit()
    if cleaned:
        logger.info(f"Cleaned up {cleaned} stale game(s)")
    return cleaned


# ─── Match data ─────────────────────────────────────────────────

async def fetch_match_data(
    db: AsyncSession, riot: RiotClient, bootcamper_id: uuid.UUID,
    riot_game_id: str, region: str,
) -> bool:
    """Store the Match-V5 payload on the finished game. False when Riot has none yet."""
    match = await riot.get_match(region, riot_game_id)
    if match is None:
        logger.warning(
            f"Match {riot_game_id} not available yet",
            extra={"bootcamper_id": str(bootcamper_id), "riot_game_id": riot_game_id},
        )
        return False
    await db.execute(
        update(Game)
        .where(Game.bootcamper_id == bootcamper_id, Game.riot_game_id == riot_game_id)
        .values(match_data=match)
    )
    await db.commit()
    return True


# ─── Summoner name ──────────────────────────────────────────────

async def refresh_summoner_name(
    riot: RiotClient, bootcamper: Bootcamper,
) -> dict | None:
    """Apply the current Riot ID to bootcamper (uncommitted). Returns the change, if any."""
    account = await riot.get_account_by_puuid(bootcamper.region, bootcamper.puuid)
    if not account or not account.get("gameName"):
        return None
    new_name = account["gameName"]
    new_riot_id = f"{account['gameName']}#{account.get('tagLine', '')}"
    if new_name == bootcamper.summoner_name and new_riot_id == bootcamper.riot_id:
        return None

    change = {
        "id": bootcamper.id,
        "old_name": bootcamper.summoner_name,
        "new_name": new_name,
        "old_riot_id": bootcamper.riot_id or "N/A",
        "new_riot_id": new_riot_id,
    }
    bootcamper.summoner_name = new_name
    bootcamper.riot_id = new_riot_id
    logger.info(
        f"Summoner renamed {change['old_riot_id']} -> {new_riot_id}",
        extra={"bootcamper_id": str(bootcamper.id)},
    )
    return change


async def update_summoner_name(
    db: AsyncSession, riot: RiotClient, bootcamper_id: uuid.UUID,
) -> dict | None:
    bootcamper = await db.get(Bootcamper, bootcamper_id)
    if bootcamper is None or not bootcamper.puuid:
        return None
    change = await refresh_summoner_name(riot, bootcamper)
    if change:
        await db.commit()
    return change


# ─── Twitch streams ─────────────────────────────────────────────

async def mark_stream_online(
    db: AsyncSession,
    bootcamper: Bootcamper,
    *,
    twitch_user_id: str,
    login: str,
    started_at: datetime | None,
    title: str | None = None,
) -> TwitchStream:
    """Flip the newest stream row live (or create one). Caller commits."""
    now = datetime.now(timezone.utc)
    stream = await db.scalar(
        select(TwitchStream)
        .where(TwitchStream.bootcamper_id == bootcamper.id)
        .order_by(TwitchStream.started_at.desc())
        .limit(1)
    )
    if stream is None:
        stream = TwitchStream(bootcamper_id=bootcamper.id)
        db.add(stream)
    stream.twitch_user_id = twitch_user_id
    stream.stream_url = stream_url(login)
    stream.live = True
    stream.started_at = started_at or now
    stream.ended_at = None
    stream.last_checked = now
    if title is not None:
        stream.title = title
    return stream


async def mark_stream_offline(db: AsyncSession, bootcamper_id: uuid.UUID) -> None:
    """End every live stream row of the bootcamper. Caller commits."""
    now = datetime.now(timezone.utc)
    await db.execute(
        update(TwitchStream)
        .where(TwitchStream.bootcamper_id == bootcamper_id, TwitchStream.live.is_(True))
        .values(live=False, ended_at=now, last_checked=now)
    )


async def check_twitch_stream(
    db: AsyncSession, twitch: TwitchClient, bootcamper_id: uuid.UUID,
) -> bool:
    """Poll Helix for the bootcamper's stream. Returns whether they are live."""
    bootcamper = await db.get(Bootcamper, bootcamper_id)
    if bootcamper is None or not bootcamper.twitch_user_id:
        return False

    streams = await twitch.get_streams([bootcamper.twitch_user_id])
    if streams:
        stream = streams[0]
        await mark_stream_online(
            db, bootcamper,
            twitch_user_id=bootcamper.twitch_user_id,
            login=bootcamper.twitch_login or stream.get("user_login", ""),
            started_at=parse_timestamp(stream.get("started_at")),
            title=stream.get("title"),
        )
    else:
        await mark_stream_offline(db, bootcamper.id)
    await db.commit()
    return bool(streams)


# ─── Ranks ──────────────────────────────────────────────────────

async def update_peak_rank(
    db: AsyncSession, riot: RiotClient, bootcamper_id: uuid.UUID,
) -> bool:
    """Raise stored peaks from current league entries. Returns whether a peak moved."""
    bootcamper = await db.get(Bootcamper, bootcamper_id)
    if bootcamper is None or not bootcamper.puuid:
        return False

    entries = await riot.get_league_entries(bootcamper.region, bootcamper.puuid)
    current = {column: getattr(bootcamper, column) for column in PEAK_COLUMNS}
    updates, raised = compute_peak_updates(current, entries, datetime.now(timezone.utc))
    if raised or bootcamper.peak_updated_at is None:
        _apply(bootcamper, updates)
        await db.commit()
    if raised:
        logger.info("New peak rank recorded", extra={"bootcamper_id": str(bootcamper.id)})
    return raised


async def update_current_rank(
    db: AsyncSession, riot: RiotClient, bootcamper_id: uuid.UUID,
) -> None:
    bootcamper = await db.get(Bootcamper, bootcamper_id)
    if bootcamper is None or not bootcamper.puuid:
        return

    entries = await riot.get_league_entries(bootcamper.region, bootcamper.puuid)
    current = {column: getattr(bootcamper, column) for column in CURRENT_RANK_COLUMNS}
    _apply(bootcamper, compute_current_rank_updates(
        current, entries, datetime.now(timezone.utc),
    ))
    await db.commit()
