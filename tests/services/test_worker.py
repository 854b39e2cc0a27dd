"""Tracking Worker — roster sync, per-job intervals, game follow-ups and failure isolation."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from bootcamp_tracker.config import Settings
from bootcamp_tracker.models.bootcamper import Bootcamper
from bootcamp_tracker.services import tracking
from bootcamp_tracker.services.playrate_service import load_playrates
from bootcamp_tracker.services.worker import (
    CURRENT_RANK_DELAY_SECONDS, MATCH_DATA_DELAY_SECONDS, PEAK_RANK_DELAY_SECONDS,
    TrackingWorker,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def worker(test_session_factory, fake_riot, fake_twitch, fake_static_data, clock):
    settings = Settings(
        worker_sync_interval_seconds=120,
        worker_spectator_interval_seconds=60,
        worker_twitch_interval_seconds=60,
        worker_name_interval_seconds=3600,
        worker_rank_interval_seconds=300,
        worker_playrate_interval_seconds=86_400,
        worker_stale_cleanup_interval_seconds=300,
    )
    return TrackingWorker(
        test_session_factory, fake_riot, fake_twitch, fake_static_data, settings, clock=clock,
    )


def _called(fake, method: str) -> list[tuple]:
    return [args for name, args in fake.calls if name == method]


async def test_roster_tracks_only_active_canonical_bootcampers(
    worker, make_user, make_bootcamper,
):
    user, _ = await make_user()
    now = datetime.now(timezone.utc)
    active = await make_bootcamper()
    await make_bootcamper(
        is_default=False, user_id=user.id, puuid=active.puuid, linked_to_default_id=active.id,
    )
    await make_bootcamper(planned_end_date=now - timedelta(days=1))
    await make_bootcamper(puuid="")

    await worker.sync_roster()
    assert [b.id for b in worker.roster] == [active.id]


async def test_tick_runs_every_job_once_per_interval(
    worker, clock, make_bootcamper, fake_riot, fake_twitch,
):
    bootcamper = await make_bootcamper(puuid="p-1", twitch_user_id="tw-1")

    await worker.tick()
    assert _called(fake_riot, "get_active_game") == [("kr", "p-1")]
    assert _called(fake_riot, "get_account_by_puuid") == [("kr", "p-1")]
    assert len(_called(fake_riot, "get_league_entries")) == 2
    assert _called(fake_twitch, "get_streams") == [(("tw-1",),)]
    assert worker.roster[0].id == bootcamper.id

    clock.now += 30
    await worker.tick()
    assert len(_called(fake_riot, "get_active_game")) == 1

    clock.now += 31
    await worker.tick()
    assert len(_called(fake_riot, "get_active_game")) == 2
    assert len(_called(fake_twitch, "get_streams")) == 2
    assert len(_called(fake_riot, "get_account_by_puuid")) == 1
    assert len(_called(fake_riot, "get_league_entries")) == 2


async def test_twitch_job_skipped_without_account(worker, make_bootcamper, fake_twitch):
    await make_bootcamper()
    await worker.tick()
    assert _called(fake_twitch, "get_streams") == []


async def test_failing_job_does_not_stop_the_others(worker, make_bootcamper, fake_riot):
    await make_bootcamper(puuid="p-bad")
    await make_bootcamper(puuid="p-good")
    fake_riot.fail_spectator.add("p-bad")

    await worker.tick()
    assert {args[1] for args in _called(fake_riot, "get_active_game")} == {"p-bad", "p-good"}
    assert {args[1] for args in _called(fake_riot, "get_league_entries")} == {"p-bad", "p-good"}


async def test_game_end_schedules_delayed_followups(worker, clock, make_bootcamper, fake_riot):
    bootcamper = await make_bootcamper(puuid="p-1")
    fake_riot.active_games["p-1"] = {"gameId": 42, "participants": []}
    await worker.tick()

    del fake_riot.active_games["p-1"]
    clock.now += 60
    await worker.tick()
    assert [d.name for d in worker.deferred] == ["match_data", "peak_rank", "current_rank"]
    ended_at = clock.now
    league_calls = len(_called(fake_riot, "get_league_entries"))

    clock.now = ended_at + MATCH_DATA_DELAY_SECONDS
    await worker.tick()
    assert _called(fake_riot, "get_match") == [("kr", "42")]
    assert len(_called(fake_riot, "get_league_entries")) == league_calls

    clock.now = ended_at + PEAK_RANK_DELAY_SECONDS
    await worker.tick()
    assert len(_called(fake_riot, "get_league_entries")) == league_calls + 1

    clock.now = ended_at + CURRENT_RANK_DELAY_SECONDS
    await worker.tick()
    assert len(_called(fake_riot, "get_league_entries")) == league_calls + 2
    assert worker.deferred == []
    assert bootcamper.id in {b.id for b in worker.roster}


async def test_followups_run_after_bootcamper_leaves_roster(worker, clock, fake_riot):
    ended = tracking.GameEnded(
        bootcamper_id=uuid.uuid4(), riot_game_id="7", region="euw1",
    )
    worker.schedule_game_followups(ended)
    clock.now += CURRENT_RANK_DELAY_SECONDS
    await worker.tick()
    assert _called(fake_riot, "get_match") == [("euw1", "7")]
    assert worker.deferred == []


async def test_startup_cleans_stale_games_and_loads_playrates(
    worker, make_bootcamper, fake_riot, fake_static_data, test_session_factory,
):
    stale = await make_bootcamper(status="in_game", last_game_id="1")
    fake_static_data.summary = [{"id": 1}]
    fake_static_data.script = '{"TOP":{"1":0.5}}'

    await worker.startup()

    async with test_session_factory() as db:
        assert (await db.get(Bootcamper, stale.id)).status == "idle"
        assert (await load_playrates(db))[1].top == 50.0


async def test_stale_cleanup_repeats_for_bootcampers_off_the_roster(
    worker, clock, make_bootcamper, test_session_factory,
):
    await worker.startup()
    ended = await make_bootcamper(
        status="in_game", last_game_id="9",
        planned_end_date=datetime.now(timezone.utc) - timedelta(minutes=1),
    )

    await worker.tick()
    assert worker.roster == []
    async with test_session_factory() as db:
        assert (await db.get(Bootcamper, ended.id)).status == "in_game"

    clock.now += 300
    await worker.tick()
    async with test_session_factory() as db:
        assert (await db.get(Bootcamper, ended.id)).status == "idle"


async def test_jobs_disabled_without_clients(
    test_session_factory, fake_static_data, make_bootcamper, clock,
):
    await make_bootcamper(twitch_user_id="tw-1")
    worker = TrackingWorker(
        test_session_factory, None, None, fake_static_data, Settings(), clock=clock,
    )
    await worker.sync_roster()
    assert worker._jobs_for(worker.roster[0]) == []


async def test_run_returns_after_stop(worker):
    worker.stop()
    await worker.run()
