"""Bootcamper Service — roster listing, creation, edits and rank summaries.

Invariants:
    - List payloads never include twitch_profile_image
    - Anonymous callers only ever see the default list
    - A personal-list row built from an association reports is_default=False and
      carries user_association_id plus linked_to_default_id
    - Rows linked to a default bootcamper show the canonical record's live game,
      live stream, status and last_game_id
    - Only the owner or an admin may edit or delete a bootcamper
    - A failed Twitch profile-image download never fails the request

Design Decisions:
    - Latest active game / live stream fetched in one batched query per list request
    - Riot and Twitch clients are passed as optional: only the code paths that need
      them raise ConfigurationError when they are not configured
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.core.domain_types import (
    ACTIVE_GAME_STATUSES, EventSubType, GameStatus, ListType, QueueType,
)
from bootcamp_tracker.core.errors import (
    ConfigurationError, ConflictError, ExternalAPIError, PermissionDeniedError,
    ResourceNotFoundError, ValidationFailedError,
)
from bootcamp_tracker.core.formatting import as_utc, format_riot_id
from bootcamp_tracker.core.rank import find_queue_entry, pick_peak_entry, summarize_entry
from bootcamp_tracker.infrastructure.riot_client import RiotClient
from bootcamp_tracker.infrastructure.twitch_client import TwitchClient
from bootcamp_tracker.models.bootcamper import Bootcamper, UserBootcamper
from bootcamp_tracker.models.game import Game
from bootcamp_tracker.models.twitch_stream import TwitchStream
from bootcamp_tracker.models.user import User
from bootcamp_tracker.schemas.bootcamper import (
    BootcamperCreate, BootcamperFilters, BootcamperUpdate,
)
from bootcamp_tracker.services.tracking import active_bootcamper_clause, refresh_summoner_name

logger = logging.getLogger(__name__)

_EXCLUDED_COLUMNS = {"twitch_profile_image"}
BOOTCAMPER_FIELDS: tuple[str, ...] = tuple(
    attr.key for attr in sa_inspect(Bootcamper).column_attrs
    if attr.key not in _EXCLUDED_COLUMNS
)

# copied from a default bootcamper onto a linked user copy
_LINKED_COPY_FIELDS: tuple[str, ...] = tuple(
    key for key in BOOTCAMPER_FIELDS
    if key.startswith(("current_", "peak_")) or key in (
        "summoner_name", "summoner_id", "puuid", "region", "riot_id",
        "twitch_login", "twitch_user_id", "status", "rank_updated_at",
    )
)

RIOT_ID_ERROR = (
    "Failed to fetch summoner by Riot ID. Please use the correct format (gameName#tagLine)."
)


def require_riot(riot: RiotClient | None) -> RiotClient:
    if riot is None:
        raise ConfigurationError("RIOT_API_KEY is not configured", "riot_api_key")
    return riot


def require_twitch(twitch: TwitchClient | None) -> TwitchClient:
    if twitch is None:
        raise ConfigurationError(
            "TWITCH_CLIENT_ID / TWITCH_CLIENT_SECRET are not configured", "twitch_client_id",
        )
    return twitch


# ─── Serialization ──────────────────────────────────────────────

def serialize_bootcamper(bootcamper: Bootcamper) -> dict:
    return {key: getattr(bootcamper, key) for key in BOOTCAMPER_FIELDS}


def serialize_game(game: Game) -> dict:
    return {
        "id": game.id,
        "riot_game_id": game.riot_game_id,
        "bootcamper_id": game.bootcamper_id,
        "started_at": game.started_at,
        "ended_at": game.ended_at,
        "status": game.status,
        "match_data": game.match_data,
    }


def serialize_stream(stream: TwitchStream) -> dict:
    return {
        "id": stream.id,
        "bootcamper_id": stream.bootcamper_id,
        "twitch_user_id": stream.twitch_user_id,
        "stream_url": stream.stream_url,
        "live": stream.live,
        "title": stream.title,
        "started_at": stream.started_at,
        "ended_at": stream.ended_at,
        "last_checked": stream.last_checked,
    }


async def _latest_live_state(
    db: AsyncSession, bootcamper_ids: set[uuid.UUID],
) -> tuple[dict[uuid.UUID, Game], dict[uuid.UUID, TwitchStream]]:
    """Newest active game and newest live stream per bootcamper."""
    if not bootcamper_ids:
        return {}, {}
    games: dict[uuid.UUID, Game] = {}
    for game in (await db.execute(
        select(Game)
        .where(Game.bootcamper_id.in_(bootcamper_ids), Game.status.in_(ACTIVE_GAME_STATUSES))
        .order_by(Game.started_at.desc())
    )).scalars():
        games.setdefault(game.bootcamper_id, game)
    streams: dict[uuid.UUID, TwitchStream] = {}
    for stream in (await db.execute(
        select(TwitchStream)
        .where(TwitchStream.bootcamper_id.in_(bootcamper_ids), TwitchStream.live.is_(True))
        .order_by(TwitchStream.started_at.desc())
    )).scalars():
        streams.setdefault(stream.bootcamper_id, stream)
    return games, streams


async def _with_live_state(db: AsyncSession, rows: list[dict]) -> list[dict]:
    """Attach games/twitch_streams (<=1 each); linked rows mirror their canonical record."""
    canonical_ids = {r["linked_to_default_id"] or r["id"] for r in rows}
    games, streams = await _latest_live_state(db, canonical_ids)

    linked_ids = {r["linked_to_default_id"] for r in rows if r["linked_to_default_id"]}
    canonical: dict[uuid.UUID, Bootcamper] = {}
    if linked_ids:
        canonical = {
            b.id: b for b in (await db.execute(
                select(Bootcamper).where(Bootcamper.id.in_(linked_ids))
            )).scalars()
        }

    for row in rows:
        source_id = row["linked_to_default_id"] or row["id"]
        game = games.get(source_id)
        stream = streams.get(source_id)
        row["games"] = [serialize_game(game)] if game else []
        row["twitch_streams"] = [serialize_stream(stream)] if stream else []
        source = canonical.get(row["linked_to_default_id"])
        if source is not None:
            row["status"] = source.status
            row["last_game_id"] = source.last_game_id
            for key in ("summoner_name", "riot_id", "puuid", "twitch_login", "twitch_user_id"):
                row[key] = row[key] or getattr(source, key)
    return rows


# ─── Listing ────────────────────────────────────────────────────

def _filtered(stmt, filters: BootcamperFilters):
    if filters.status:
        stmt = stmt.where(Bootcamper.status == filters.status.value)
    if filters.role:
        stmt = stmt.where(Bootcamper.role == filters.role.value)
    if filters.region:
        stmt = stmt.where(Bootcamper.region == filters.region.value)
    return stmt


def _association_row(assoc: UserBootcamper, user_id: uuid.UUID) -> dict:
    bootcamper = assoc.bootcamper
    row = serialize_bootcamper(bootcamper)
    row.update(
        name=assoc.name_override or bootcamper.name,
        start_date=assoc.start_date or bootcamper.start_date,
        planned_end_date=assoc.planned_end_date,
        is_default=False,
        user_id=user_id,
        user_association_id=assoc.id,
        linked_to_default_id=bootcamper.id if bootcamper.is_default else None,
    )
    return row


async def list_bootcampers(
    db: AsyncSession, user: User | None, filters: BootcamperFilters,
) -> list[dict]:
    """Default list for anonymous callers and list_type=default; personal list otherwise."""
    if user is None or filters.list_type == ListType.DEFAULT:
        stmt = _filtered(select(Bootcamper).where(Bootcamper.is_default.is_(True)), filters)
        bootcampers = (await db.execute(
            stmt.order_by(Bootcamper.created_at.desc())
        )).scalars().all()
        rows = [{**serialize_bootcamper(b), "user_association_id": None} for b in bootcampers]
        return await _with_live_state(db, rows)

    assoc_stmt = _filtered(
        select(UserBootcamper)
        .join(Bootcamper, UserBootcamper.bootcamper_id == Bootcamper.id)
        .where(UserBootcamper.user_id == user.id),
        filters,
    )
    associations = (await db.execute(
        assoc_stmt.order_by(UserBootcamper.created_at.desc())
    )).scalars().all()

    owned_stmt = _filtered(
        select(Bootcamper).where(
            Bootcamper.user_id == user.id, Bootcamper.is_default.is_(False),
        ),
        filters,
    )
    owned = (await db.execute(owned_stmt)).scalars().all()

    rows = [_association_row(a, user.id) for a in associations]
    rows += [{**serialize_bootcamper(b), "user_association_id": None} for b in owned]
    rows.sort(key=lambda r: r["created_at"], reverse=True)
    return await _with_live_state(db, rows)


async def get_bootcamper_detail(db: AsyncSession, bootcamper_id: uuid.UUID) -> dict:
    bootcamper = await db.get(Bootcamper, bootcamper_id)
    if bootcamper is None:
        raise ResourceNotFoundError("Bootcamper", str(bootcamper_id))
    games = (await db.execute(
        select(Game).where(Game.bootcamper_id == bootcamper_id)
        .order_by(Game.started_at.desc()).limit(10)
    )).scalars().all()
    streams = (await db.execute(
        select(TwitchStream).where(TwitchStream.bootcamper_id == bootcamper_id)
        .order_by(TwitchStream.started_at.desc()).limit(10)
    )).scalars().all()
    return {
        **serialize_bootcamper(bootcamper),
        "games": [serialize_game(g) for g in games],
        "twitch_streams": [serialize_stream(s) for s in streams],
    }


# ─── Creation ───────────────────────────────────────────────────

async def _fetch_profile_image(twitch: TwitchClient, url: str | None) -> bytes | None:
    if not url:
        return None
    try:
        return await twitch.download_image(url)
    except ExternalAPIError as e:
        logger.warning(f"Failed to download Twitch profile image: {e.message}")
        return None


async def _add_association(
    db: AsyncSession, user: User, data: BootcamperCreate,
) -> dict:
    default = await db.get(Bootcamper, data.default_bootcamper_id)
    if default is None or not default.is_default:
        raise ResourceNotFoundError("Default bootcamper", str(data.default_bootcamper_id))

    existing = await db.scalar(select(UserBootcamper).where(
        UserBootcamper.user_id == user.id, UserBootcamper.bootcamper_id == default.id,
    ))
    if existing is not None:
        raise ValidationFailedError("This bootcamper is already in your list")

    assoc = UserBootcamper(
        user_id=user.id,
        bootcamper_id=default.id,
        name_override=data.name,
        start_date=data.start_date,
        planned_end_date=data.planned_end_date,
    )
    db.add(assoc)
    await db.commit()
    logger.info(
        f"{user.username} added default bootcamper {default.summoner_name} to their list",
        extra={"bootcamper_id": str(default.id), "user_id": str(user.id)},
    )
    return {
        **serialize_bootcamper(default),
        "name": assoc.name_override or default.name,
        "start_date": assoc.start_date,
        "planned_end_date": assoc.planned_end_date,
        "is_default": False,
        "user_id": user.id,
        "user_association_id": assoc.id,
        "linked_to_default_id": default.id,
    }


async def _create_linked_copy(
    db: AsyncSession, user: User, default: Bootcamper, data: BootcamperCreate,
) -> Bootcamper:
    image = await db.scalar(
        select(Bootcamper.twitch_profile_image).where(Bootcamper.id == default.id)
    )
    copy = Bootcamper(
        **{key: getattr(default, key) for key in _LINKED_COPY_FIELDS},
        twitch_profile_image=image,
        name=data.name or default.name,
        role=data.role.value if data.role else default.role,
        start_date=data.start_date,
        planned_end_date=data.planned_end_date,
        is_default=False,
        user_id=user.id,
        linked_to_default_id=default.id,
    )
    db.add(copy)
    return copy


async def create_bootcamper(
    db: AsyncSession,
    user: User,
    data: BootcamperCreate,
    riot: RiotClient | None,
    twitch: TwitchClient | None,
) -> dict:
    if data.default_bootcamper_id is not None:
        return await _add_association(db, user, data)

    region = data.region.value
    try:
        resolved = await require_riot(riot).resolve_riot_id(region, data.summoner_name)
    except ExternalAPIError as e:
        logger.warning(f"Riot ID lookup failed for {data.summoner_name}: {e.message}")
        resolved = None
    if resolved is None:
        raise ValidationFailedError(RIOT_ID_ERROR)

    twitch_user_id = None
    profile_image = None
    if data.twitch_login:
        client = require_twitch(twitch)
        twitch_user = await client.get_user_by_login(data.twitch_login)
        if twitch_user:
            twitch_user_id = twitch_user["id"]
            profile_image = await _fetch_profile_image(
                client, twitch_user.get("profile_image_url"),
            )

    is_default = user.is_admin and data.list_type == ListType.DEFAULT
    duplicate = await db.scalar(select(Bootcamper.id).where(
        Bootcamper.puuid == resolved["puuid"], Bootcamper.user_id == user.id,
    ))
    if duplicate is not None:
        raise ConflictError("This bootcamper is already in your list", "ALREADY_IN_LIST")

    default = None
    if not user.is_admin:
        default = await db.scalar(select(Bootcamper).where(
            Bootcamper.puuid == resolved["puuid"], Bootcamper.is_default.is_(True),
        ).limit(1))

    if default is not None:
        bootcamper = await _create_linked_copy(db, user, default, data)
    else:
        bootcamper = Bootcamper(
            riot_id=format_riot_id(data.summoner_name, region),
            summoner_name=resolved["game_name"],
            summoner_id=resolved.get("summoner_id"),
            puuid=resolved["puuid"],
            region=region,
            twitch_login=data.twitch_login,
            twitch_user_id=twitch_user_id,
            twitch_profile_image=profile_image,
            role=data.role.value if data.role else None,
            name=data.name,
            start_date=data.start_date,
            planned_end_date=data.planned_end_date,
            is_default=is_default,
            user_id=user.id,
        )
        db.add(bootcamper)

    await db.commit()
    logger.info(
        f"Created bootcamper {bootcamper.summoner_name} "
        f"(default={bootcamper.is_default}, linked={bootcamper.linked_to_default_id is not None})",
        extra={"bootcamper_id": str(bootcamper.id), "user_id": str(user.id)},
    )
    return serialize_bootcamper(bootcamper)


# ─── Edits ──────────────────────────────────────────────────────

async def _owned_bootcamper(
    db: AsyncSession, user: User, bootcamper_id: uuid.UUID,
) -> Bootcamper:
    bootcamper = await db.get(Bootcamper, bootcamper_id)
    if bootcamper is None:
        raise ResourceNotFoundError("Bootcamper", str(bootcamper_id))
    if bootcamper.user_id != user.id and not user.is_admin:
        raise PermissionDeniedError("Forbidden - you can only modify your own bootcampers")
    return bootcamper


async def update_bootcamper(
    db: AsyncSession,
    user: User,
    bootcamper_id: uuid.UUID,
    data: BootcamperUpdate,
    twitch: TwitchClient | None,
) -> dict:
    bootcamper = await _owned_bootcamper(db, user, bootcamper_id)
    changes = data.model_dump(exclude_unset=True)
    start = changes.get("start_date") or as_utc(bootcamper.start_date)
    end = changes.get("planned_end_date") or as_utc(bootcamper.planned_end_date)
    if end < start:
        raise ValidationFailedError("planned_end_date must not be before start_date")

    new_login = changes.get("twitch_login")
    if new_login and new_login != bootcamper.twitch_login:
        client = require_twitch(twitch)
        twitch_user = await client.get_user_by_login(new_login)
        if twitch_user is None:
            raise ResourceNotFoundError("Twitch user", new_login)
        bootcamper.twitch_user_id = twitch_user["id"]
        image = await _fetch_profile_image(client, twitch_user.get("profile_image_url"))
        if image is not None:
            bootcamper.twitch_profile_image = image

    for key in ("name", "riot_id"):
        if key in changes:
            setattr(bootcamper, key, changes[key] or None)
    if "twitch_login" in changes:
        bootcamper.twitch_login = changes["twitch_login"]
    if "role" in changes:
        bootcamper.role = changes["role"].value if changes["role"] else None
    for key in ("start_date", "planned_end_date", "status"):
        if changes.get(key) is not None:
            value = changes[key]
            setattr(bootcamper, key, getattr(value, "value", value))
    if "actual_end_date" in changes:
        bootcamper.actual_end_date = changes["actual_end_date"]

    await db.commit()
    await db.refresh(bootcamper)
    return serialize_bootcamper(bootcamper)


async def delete_bootcamper(
    db: AsyncSession, user: User, bootcamper_id: uuid.UUID,
) -> None:
    bootcamper = await _owned_bootcamper(db, user, bootcamper_id)
    await db.delete(bootcamper)
    await db.commit()
    logger.info(
        f"Deleted bootcamper {bootcamper.summoner_name}",
        extra={"bootcamper_id": str(bootcamper_id), "user_id": str(user.id)},
    )


async def delete_association(
    db: AsyncSession, user: User, association_id: uuid.UUID,
) -> None:
    assoc = await db.get(UserBootcamper, association_id)
    if assoc is None:
        raise ResourceNotFoundError("User bootcamper", str(association_id))
    if assoc.user_id != user.id and not user.is_admin:
        raise PermissionDeniedError()
    await db.delete(assoc)
    await db.commit()


# ─── Ranks & names ──────────────────────────────────────────────

async def _rank_row(
    riot: RiotClient | None, bootcamper: Bootcamper, games_played: int,
) -> dict:
    row = {
        "id": bootcamper.id,
        "summoner_name": bootcamper.summoner_name,
        "riot_id": bootcamper.riot_id,
        "region": bootcamper.region,
        "role": bootcamper.role,
        "status": bootcamper.status,
        "games_played": games_played,
        "solo_queue": None,
        "flex_queue": None,
        "peak_rank": None,
    }
    if riot is None or not bootcamper.puuid:
        return row
    try:
        entries = await riot.get_league_entries(bootcamper.region, bootcamper.puuid)
    except ExternalAPIError as e:
        logger.warning(
            f"Rank lookup failed: {e.message}", extra={"bootcamper_id": str(bootcamper.id)},
        )
        return row
    solo = find_queue_entry(entries, QueueType.SOLO)
    flex = find_queue_entry(entries, QueueType.FLEX)
    row.update(
        solo_queue=summarize_entry(solo),
        flex_queue=summarize_entry(flex),
        peak_rank=summarize_entry(pick_peak_entry(solo, flex)),
    )
    return row


async def rank_summaries(
    db: AsyncSession, user: User | None, list_type: ListType, riot: RiotClient | None,
) -> list[dict]:
    now = datetime.now(timezone.utc)
    stmt = select(Bootcamper).where(active_bootcamper_clause(now))
    if user is None or list_type == ListType.DEFAULT:
        stmt = stmt.where(Bootcamper.is_default.is_(True))
    else:
        stmt = stmt.where(Bootcamper.user_id == user.id, Bootcamper.is_default.is_(False))
    bootcampers = (await db.execute(stmt)).scalars().all()
    if not bootcampers:
        return []

    counts = dict((await db.execute(
        select(Game.bootcamper_id, func.count(Game.id))
        .where(
            Game.bootcamper_id.in_([b.id for b in bootcampers]),
            Game.status == GameStatus.COMPLETED.value,
        )
        .group_by(Game.bootcamper_id)
    )).all())
    return list(await asyncio.gather(*(
        _rank_row(riot, b, counts.get(b.id, 0)) for b in bootcampers
    )))


async def update_all_names(db: AsyncSession, riot: RiotClient | None) -> dict:
    client = require_riot(riot)
    bootcampers = (await db.execute(
        select(Bootcamper).where(Bootcamper.puuid != "")
    )).scalars().all()

    updates = []
    for bootcamper in bootcampers:
        try:
            change = await refresh_summoner_name(client, bootcamper)
        except ExternalAPIError as e:
            logger.warning(
                f"Name refresh failed: {e.message}",
                extra={"bootcamper_id": str(bootcamper.id)},
            )
            continue
        if change:
            updates.append(change)
    await db.commit()
    return {
        "success": True,
        "checked": len(bootcampers),
        "updated": len(updates),
        "updates": updates,
    }


# ─── Twitch subscriptions ───────────────────────────────────────

async def subscribe_to_streams(
    db: AsyncSession,
    bootcamper_id: uuid.UUID,
    twitch: TwitchClient | None,
    *,
    callback_url: str,
    secret: str,
    development: bool,
) -> dict:
    if development:
        logger.info("Skipping EventSub subscription in development")
        return {
            "success": True,
            "message": "Twitch subscriptions are skipped in development",
            "subscriptions": [],
        }
    if not callback_url:
        raise ConfigurationError("TWITCH_CALLBACK_URL is not configured", "twitch_callback_url")
    if not secret:
        raise ConfigurationError(
            "TWITCH_EVENTSUB_SECRET is not configured", "twitch_eventsub_secret",
        )

    bootcamper = await db.get(Bootcamper, bootcamper_id)
    if bootcamper is None:
        raise ResourceNotFoundError("Bootcamper", str(bootcamper_id))
    if not bootcamper.twitch_user_id:
        raise ValidationFailedError("Bootcamper has no linked Twitch account")

    client = require_twitch(twitch)
    subscriptions = []
    for sub_type in (EventSubType.STREAM_ONLINE, EventSubType.STREAM_OFFLINE):
        subscriptions.append(await client.create_eventsub_subscription(
            sub_type, bootcamper.twitch_user_id, callback_url, secret,
        ))
    logger.info(
        f"Subscribed to stream events for {bootcamper.twitch_login}",
        extra={"bootcamper_id": str(bootcamper.id)},
    )
    return {
        "success": True,
        "message": f"Subscribed to stream events for {bootcamper.twitch_login}",
        "subscriptions": subscriptions,
    }
