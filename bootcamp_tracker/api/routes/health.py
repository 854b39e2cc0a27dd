"""Health & Readiness Probes.

Invariants:
    - GET /api/health/ is 200 whenever the process serves requests
    - GET /api/health/ready is 503 only when the database is unreachable; missing
      Riot/Twitch credentials are reported but do not fail readiness (those
      features degrade to CONFIGURATION_ERROR on use)
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from bootcamp_tracker.config import get_settings
from bootcamp_tracker.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])

VERSION = "1.0.0"


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {"status": "healthy", "service": "bootcamp-tracker-api", "version": VERSION}


@router.get("/ready")
async def readiness_check():
    settings = get_settings()
    integrations = {
        "riot": "configured" if settings.riot_api_key else "missing",
        "twitch": (
            "configured"
            if settings.twitch_client_id and settings.twitch_client_secret else "missing"
        ),
    }
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        logger.warning("Readiness check failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
                "checks": {"database": "unavailable", **integrations},
            },
        )
    return {"status": "ready", "checks": {"database": "healthy", **integrations}}
