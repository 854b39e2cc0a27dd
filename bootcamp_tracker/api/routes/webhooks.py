"""Twitch EventSub Webhook — signature check, challenge echo and notification dispatch.

Invariants:
    - The signature is verified over the raw body before anything is parsed
    - Missing headers or a mismatched signature → 403 INVALID_SIGNATURE
    - webhook_callback_verification echoes the challenge as text/plain
    - Notifications are acknowledged with 200 even when no bootcamper matches,
      so Twitch does not retry or revoke the subscription
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from bootcamp_tracker.config import get_settings
from bootcamp_tracker.core.domain_types import EventSubMessageType
from bootcamp_tracker.core.errors import InvalidSignatureError, ValidationFailedError
from bootcamp_tracker.core.eventsub import (
    MESSAGE_ID_HEADER, MESSAGE_TYPE_HEADER, SIGNATURE_HEADER, TIMESTAMP_HEADER,
    verify_signature,
)
from bootcamp_tracker.infrastructure.database import get_db
from bootcamp_tracker.services.twitch_webhook import handle_notification

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/twitch")
async def twitch_eventsub(request: Request, db: AsyncSession = Depends(get_db)):
    body = await request.body()
    headers = request.headers
    if not verify_signature(
        get_settings().twitch_eventsub_secret,
        headers.get(MESSAGE_ID_HEADER),
        headers.get(TIMESTAMP_HEADER),
        headers.get(SIGNATURE_HEADER),
        body,
    ):
        logger.warning("Rejected EventSub delivery with invalid signature")
        raise InvalidSignatureError()

    try:
        payload = json.loads(body)
    except ValueError:
        raise ValidationFailedError("Body is not valid JSON")
    if not isinstance(payload, dict):
        raise ValidationFailedError("Body must be a JSON object")

    message_type = headers.get(MESSAGE_TYPE_HEADER)
    event_type = payload.get("subscription", {}).get("type")

    if message_type == EventSubMessageType.VERIFICATION.value:
        logger.info(f"EventSub verification for {event_type}", extra={"event_type": event_type})
        return PlainTextResponse(str(payload.get("challenge", "")), status_code=200)

    if message_type == EventSubMessageType.NOTIFICATION.value:
        await handle_notification(db, payload)
        return {"success": True}

    if message_type == EventSubMessageType.REVOCATION.value:
        logger.warning(
            f"EventSub subscription revoked: {payload.get('subscription', {}).get('status')}",
            extra={"event_type": event_type},
        )
        return {"success": True}

    raise ValidationFailedError(f"Unknown message type '{message_type}'")
