"""Bootcamp Tracker API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map BootcampError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Shared outbound HTTP clients closed on shutdown
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bootcamp_tracker.api import dependencies
from bootcamp_tracker.api.error_handlers import register_error_handlers
from bootcamp_tracker.api.routes import (
    auth, bootcampers, debug, health, live, user_bootcampers, user_layout, webhooks,
)
from bootcamp_tracker.config import get_settings
from bootcamp_tracker.infrastructure import database
from bootcamp_tracker.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


async def _close_clients() -> None:
    for provider in (
        dependencies.get_riot_client,
        dependencies.get_twitch_client,
        dependencies.get_static_data_client,
    ):
        if provider.cache_info().currsize:
            client = provider()
            if client is not None:
                await client.aclose()
            provider.cache_clear()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info(f"Bootcamp Tracker API started ({settings.environment})")
    yield
    logger.info("Bootcamp Tracker API shutting down")
    await _close_clients()
    if database.db_manager is not None:
        await database.db_manager.dispose()


app = FastAPI(
    title="Bootcamp Tracker API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(bootcampers.router)
app.include_router(user_bootcampers.router)
app.include_router(user_layout.router)
app.include_router(live.router)
app.include_router(debug.router)
app.include_router(webhooks.router)

register_error_handlers(app)
