"""Tracking Worker — periodic reconciliation of bootcamper game, stream and rank state.

Invariants:
    - Only active, canonical bootcampers are tracked (linked copies mirror their default)
    - Stale in_game rows are reset on start and every stale-cleanup interval, covering
      bootcampers whose end date passed mid-game (they are no longer on the roster)
    - Every job runs in its own DB session; a failing job is logged and never stops the loop
    - A tick never overlaps the previous one (_tick_lock)
    - Follow-ups of a finished game (match data, peak rank, current rank) run once,
      after their delay, even if the bootcamper left the roster meanwhile

Design Decisions:
    - Single asyncio loop with per-(job, bootcamper) due times instead of a job queue:
      one process, a handful of bootcampers, intervals of minutes
    - Roster held as frozen snapshots: ORM rows never outlive their session
    - stop() only sets an Event, so it is safe as a signal handler callback
"""

import asyncio
import logging
import signal
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bootcamp_tracker.config import Settings, get_settings
from bootcamp_tracker.db.session import create_session_factory
from bootcamp_tracker.infrastructure.clients import (
    build_riot_client, build_static_data_client, build_twitch_client,
)
from bootcamp_tracker.infrastructure.observability import setup_logging
from bootcamp_tracker.infrastructure.riot_client import RiotClient
from bootcamp_tracker.infrastructure.static_data import StaticDataClient
from bootcamp_tracker.infrastructure.twitch_client import TwitchClient
from bootcamp_tracker.models.bootcamper import Bootcamper
from bootcamp_tracker.services import tracking
from bootcamp_tracker.services.playrate_service import refresh_playrates

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 5.0
MATCH_DATA_DELAY_SECONDS = 60
PEAK_RANK_DELAY_SECONDS = 90
CURRENT_RANK_DELAY_SECONDS = 95

Job = Callable[[AsyncSession], Awaitable[object]]


@dataclass(frozen=True)
class TrackedBootcamper:
    id: uuid.UUID
    summoner_name: str
    has_twitch: bool


@dataclass
class DeferredJob:
    due_at: float
    name: str
    bootcamper_id: uuid.UUID
    job: Job


class TrackingWorker:
    """Runs every tracking job on its own interval."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        riot: RiotClient | None,
        twitch: TwitchClient | None,
        static_data: StaticDataClient,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_factory = session_factory
        self.riot = riot
        self.twitch = twitch
        self.static_data = static_data
        self.settings = settings
        self.clock = clock

        self.roster: list[TrackedBootcamper] = []
        self.deferred: list[DeferredJob] = []
        self._last_run: dict[tuple[str, uuid.UUID], float] = {}
        self._next_sync = 0.0
        self._next_playrates = 0.0
        self._next_cleanup = 0.0
        self._stop = asyncio.Event()
        self._tick_lock = asyncio.Lock()

    # ─── Lifecycle ──────────────────────────────────────────────

    async def run(self) -> None:
        logger.info(
            f"Tracking worker started (sync every {self.settings.worker_sync_interval_seconds}s)",
        )
        await self.startup()
        while not self._stop.is_set():
            if self._tick_lock.locked():
                logger.warning("Previous tick still running, skipping")
            else:
                try:
                    async with self._tick_lock:
                        await self.tick()
                except Exception as e:
                    logger.error(f"Worker tick failed: {e}", exc_info=True)
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=POLL_INTERVAL_SECONDS)
            except asyncio.TimeoutError:
                pass
        logger.info("Tracking worker stopped")

    def stop(self) -> None:
        self._stop.set()

    async def startup(self) -> None:
        """Stale-game cleanup, then the first play-rate refresh."""
        await self._cleanup_stale_games()
        await self._refresh_playrates()

    # ─── Scheduling ─────────────────────────────────────────────

    async def tick(self) -> None:
        now = self.clock()
        if now >= self._next_sync:
            await self.sync_roster()
            self._next_sync = now + self.settings.worker_sync_interval_seconds
        if now >= self._next_cleanup:
            await self._cleanup_stale_games()
        if now >= self._next_playrates:
            await self._refresh_playrates()

        await self._run_deferred(now)
        await asyncio.gather(*(
            self._run_due_jobs(bootcamper, now) for bootcamper in self.roster
        ))

    async def sync_roster(self) -> None:
        now = datetime.now(timezone.utc)
        async with self.session_factory() as db:
            rows = (await db.execute(
                select(Bootcamper.id, Bootcamper.summoner_name, Bootcamper.twitch_user_id)
                .where(
                    tracking.active_bootcamper_clause(now),
                    Bootcamper.linked_to_default_id.is_(None),
                    Bootcamper.puuid != "",
                )
            )).all()
        self.roster = [
            TrackedBootcamper(id=row.id, summoner_name=row.summoner_name,
                              has_twitch=bool(row.twitch_user_id))
            for row in rows
        ]
        tracked = {b.id for b in self.roster}
        self._last_run = {k: v for k, v in self._last_run.items() if k[1] in tracked}
        logger.info(f"Synced {len(self.roster)} active bootcamper(s)")

    def _jobs_for(self, bootcamper: TrackedBootcamper) -> list[tuple[str, int, Job]]:
        s = self.settings
        bid = bootcamper.id
        jobs: list[tuple[str, int, Job]] = []
        if self.riot is not None:
            jobs.append(("spectator", s.worker_spectator_interval_seconds,
                         lambda db: self._spectator(db, bid)))
            jobs.append(("summoner_name", s.worker_name_interval_seconds,
                         lambda db: tracking.update_summoner_name(db, self.riot, bid)))
            jobs.append(("peak_rank", s.worker_rank_interval_seconds,
                         lambda db: tracking.update_peak_rank(db, self.riot, bid)))
            jobs.append(("current_rank", s.worker_rank_interval_seconds,
                         lambda db: tracking.update_current_rank(db, self.riot, bid)))
        if self.twitch is not None and bootcamper.has_twitch:
            jobs.append(("twitch", s.worker_twitch_interval_seconds,
                         lambda db: tracking.check_twitch_stream(db, self.twitch, bid)))
        return jobs

    async def _run_due_jobs(self, bootcamper: TrackedBootcamper, now: float) -> None:
        for name, interval, job in self._jobs_for(bootcamper):
            key = (name, bootcamper.id)
            last = self._last_run.get(key)
            if last is not None and now - last < interval:
                continue
            self._last_run[key] = now
            await self._run_job(name, bootcamper.id, job)

    async def _run_deferred(self, now: float) -> None:
        due = [d for d in self.deferred if d.due_at <= now]
        self.deferred = [d for d in self.deferred if d.due_at > now]
        for item in due:
            await self._run_job(item.name, item.bootcamper_id, item.job)

    def schedule_game_followups(self, ended: tracking.GameEnded) -> None:
        """Queue match-data and rank refreshes for a game that just finished."""
        now = self.clock()
        bid = ended.bootcamper_id
        self.deferred += [
            DeferredJob(now + MATCH_DATA_DELAY_SECONDS, "match_data", bid,
                        lambda db: tracking.fetch_match_data(
                            db, self.riot, bid, ended.riot_game_id, ended.region)),
            DeferredJob(now + PEAK_RANK_DELAY_SECONDS, "peak_rank", bid,
                        lambda db: tracking.update_peak_rank(db, self.riot, bid)),
            DeferredJob(now + CURRENT_RANK_DELAY_SECONDS, "current_rank", bid,
                        lambda db: tracking.update_current_rank(db, self.riot, bid)),
        ]

    # ─── Jobs ───────────────────────────────────────────────────

    async def _spectator(self, db: AsyncSession, bootcamper_id: uuid.UUID) -> None:
        ended = await tracking.check_spectator(db, self.riot, bootcamper_id)
        if ended is not None:
            self.schedule_game_followups(ended)

    async def _cleanup_stale_games(self) -> None:
        self._next_cleanup = self.clock() + self.settings.worker_stale_cleanup_interval_seconds
        if self.riot is None:
            return
        await self._run_job("stale_cleanup", None, lambda db: tracking.cleanup_stale_games(
            db, self.riot,
        ))

    async def _refresh_playrates(self) -> None:
        self._next_playrates = self.clock() + self.settings.worker_playrate_interval_seconds
        await self._run_job("playrates", None, lambda db: refresh_playrates(
            db, self.static_data,
        ))

    async def _run_job(
        self, name: str, bootcamper_id: uuid.UUID | None, job: Job,
    ) -> bool:
        extra = {"job": name}
        if bootcamper_id is not None:
            extra["bootcamper_id"] = str(bootcamper_id)
        started = time.perf_counter()
        try:
            async with self.session_factory() as db:
                await job(db)
        except Exception as e:
            logger.error(f"Job {name} failed: {e}", extra=extra, exc_info=True)
            return False
        extra["duration_ms"] = round((time.perf_counter() - started) * 1000, 1)
        logger.debug(f"Job {name} done", extra=extra)
        return True


# ─── Entry point ────────────────────────────────────────────────

async def _serve(settings: Settings) -> None:
    engine, session_factory = create_session_factory(settings.database_url)
    riot = build_riot_client(settings)
    twitch = build_twitch_client(settings)
    static_data = build_static_data_client(settings)
    if riot is None:
        logger.warning("RIOT_API_KEY not set: spectator, name and rank jobs disabled")
    if twitch is None:
        logger.warning("Twitch credentials not set: stream polling disabled")

    worker = TrackingWorker(session_factory, riot, twitch, static_data, settings)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)

    try:
        await worker.run()
    finally:
        for client in (riot, twitch, static_data):
            if client is not None:
                await client.aclose()
        await engine.dispose()


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    asyncio.run(_serve(settings))


if __name__ == "__main__":
    main()
