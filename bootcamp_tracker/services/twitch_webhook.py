"""Twitch EventSub Handling — applies verified stream.online / stream.offline notifications.

Invariants:
    - Called only after the signature check has passed
    - Every tracked bootcamper with the broadcaster's Twitch id is updated, except
      linked copies (they read stream state from their canonical record)
    - Unknown broadcasters and unhandled event types are logged and acknowledged
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.core.domain_types import EventSubType
from bootcamp_tracker.core.formatting import parse_timestamp
from bootcamp_tracker.models.bootcamper import Bootcamper
from bootcamp_tracker.services.tracking import mark_stream_offline, mark_stream_online

logger = logging.getLogger(__name__)


async def _bootcampers_for_broadcaster(
    db: AsyncSession, broadcaster_user_id: str,
) -> list[Bootcamper]:
    rows = await db.execute(
        select(Bootcamper).where(
            Bootcamper.twitch_user_id == broadcaster_user_id,
            Bootcamper.linked_to_default_id.is_(None),
        )
    )
    return list(rows.scalars().all())


async def handle_notification(db: AsyncSession, payload: dict) -> int:
    """Apply one notification. Returns the number of bootcampers updated."""
    event_type = payload.get("subscription", {}).get("type")
    event = payload.get("event") or {}
    broadcaster_id = event.get("broadcaster_user_id")

    if event_type not in (EventSubType.STREAM_ONLINE.value, EventSubType.STREAM_OFFLINE.value):
        logger.info(f"Ignoring EventSub event type {event_type}", extra={"event_type": event_type})
        return 0

    bootcampers = await _bootcampers_for_broadcaster(db, broadcaster_id) if broadcaster_id else []
    if not bootcampers:
        logger.warning(
            f"No bootcamper for Twitch broadcaster {broadcaster_id}",
            extra={"event_type": event_type},
        )
        return 0

    for bootcamper in bootcampers:
        if event_type == EventSubType.STREAM_ONLINE.value:
            await mark_stream_online(
                db, bootcamper,
                twitch_user_id=broadcaster_id,
                login=event.get("broadcaster_user_login") or bootcamper.twitch_login or "",
                started_at=parse_timestamp(event.get("started_at")),
            )
        else:
            await mark_stream_offline(db, bootcamper.id)
        logger.info(
            f"Stream {event_type.split('.')[-1]} for {bootcamper.summoner_name}",
            extra={"bootcamper_id": str(bootcamper.id), "event_type": event_type},
        )
    await db.commit()
    return len(bootcampers)
