"""Tracking Jobs — spectator transitions, match/rank/name/stream refresh against fakes.

Each job runs in its own session, as the worker runs them.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from bootcamp_tracker.core.errors import ExternalAPIError
from bootcamp_tracker.models.bootcamper import Bootcamper
from bootcamp_tracker.models.champion_playrate import ChampionPlayrate
from bootcamp_tracker.models.game import Game
from bootcamp_tracker.models.twitch_stream import TwitchStream
from bootcamp_tracker.services import tracking
from bootcamp_tracker.services.playrate_service import load_playrates, refresh_playrates


def _active_game(game_id=9001, puuid="puuid-1"):
    return {
        "gameId": game_id,
        "gameStartTime": 1_709_294_400_000,
        "participants": [
            {"puuid": puuid, "championId": 157, "spell1Id": 4, "spell2Id": 11, "teamId": 100},
            {"puuid": "enemy", "championId": 1, "spell1Id": 4, "spell2Id": 12, "teamId": 200},
            {"puuid": "", "championId": 2, "spell1Id": 4, "spell2Id": 7, "teamId": 200},
        ],
    }


async def _bootcamper(session_factory, bootcamper_id) -> Bootcamper:
    async with session_factory() as db:
        return await db.get(Bootcamper, bootcamper_id)


async def _games(session_factory, bootcamper_id) -> list[Game]:
    async with session_factory() as db:
        return (await db.execute(
            select(Game).where(Game.bootcamper_id == bootcamper_id)
        )).scalars().all()


# ─── Spectator ──────────────────────────────────────────────────

async def test_entering_a_game_records_enriched_lobby(
    make_bootcamper, fake_riot, test_session_factory,
):
    bootcamper = await make_bootcamper(puuid="puuid-1")
    fake_riot.active_games["puuid-1"] = _active_game()
    fake_riot.league_entries["enemy"] = [{
        "queueType": "RANKED_SOLO_5x5", "tier": "MASTER", "rank": "I", "leaguePoints": 120,
    }]

    async with test_session_factory() as db:
        assert await tracking.check_spectator(db, fake_riot, bootcamper.id) is None

    row = await _bootcamper(test_session_factory, bootcamper.id)
    assert row.status == "in_game"
    assert row.last_game_id == "9001"

    [game] = await _games(test_session_factory, bootcamper.id)
    assert game.status == "in_progress"
    by_puuid = {p["puuid"]: p for p in game.match_data["participants"]}
    assert by_puuid["puuid-1"]["inferredRole"] == "JUNGLE"
    assert by_puuid["puuid-1"]["rank"] == "Unranked"
    assert by_puuid["enemy"]["rank"] == "MASTER I"
    assert by_puuid["enemy"]["leaguePoints"] == 120
    assert by_puuid[""]["rank"] == "Unranked"
    assert by_puuid[""]["inferredRole"] == "MIDDLE"


async def test_same_game_is_not_enriched_twice(make_bootcamper, fake_riot, test_session_factory):
    bootcamper = await make_bootcamper(puuid="puuid-1")
    fake_riot.active_games["puuid-1"] = _active_game()

    async with test_session_factory() as db:
        await tracking.check_spectator(db, fake_riot, bootcamper.id)
    league_calls = sum(1 for name, _ in fake_riot.calls if name == "get_league_entries")

    async with test_session_factory() as db:
        await tracking.check_spectator(db, fake_riot, bootcamper.id)
    assert sum(1 for name, _ in fake_riot.calls if name == "get_league_entries") == league_calls
    assert len(await _games(test_session_factory, bootcamper.id)) == 1


async def test_participant_rank_failure_degrades_to_unranked(
    make_bootcamper, fake_riot, test_session_factory,
):
    bootcamper = await make_bootcamper(puuid="puuid-1")
    fake_riot.active_games["puuid-1"] = _active_game()
    fake_riot.fail_league.add("enemy")

    async with test_session_factory() as db:
        await tracking.check_spectator(db, fake_riot, bootcamper.id)
    [game] = await _games(test_session_factory, bootcamper.id)
    enemy = next(p for p in game.match_data["participants"] if p["puuid"] == "enemy")
    assert enemy["rank"] == "Unranked"


async def test_leaving_a_game_completes_it_and_reports_end(
    make_bootcamper, fake_riot, test_session_factory,
):
    bootcamper = await make_bootcamper(puuid="puuid-1")
    fake_riot.active_games["puuid-1"] = _active_game()
    async with test_session_factory() as db:
        await tracking.check_spectator(db, fake_riot, bootcamper.id)

    del fake_riot.active_games["puuid-1"]
    async with test_session_factory() as db:
        ended = await tracking.check_spectator(db, fake_riot, bootcamper.id)

    assert ended == tracking.GameEnded(bootcamper.id, "9001", "kr")
    assert (await _bootcamper(test_session_factory, bootcamper.id)).status == "idle"
    [game] = await _games(test_session_factory, bootcamper.id)
    assert game.status == "completed"
    assert game.ended_at is not None


async def test_idle_player_without_game_is_a_no_op(make_bootcamper, fake_riot, test_session_factory):
    bootcamper = await make_bootcamper(puuid="puuid-1")
    async with test_session_factory() as db:
        assert await tracking.check_spectator(db, fake_riot, bootcamper.id) is None
    assert await _games(test_session_factory, bootcamper.id) == []


async def test_spectator_error_propagates(make_bootcamper, fake_riot, test_session_factory):
    bootcamper = await make_bootcamper(puuid="puuid-1")
    fake_riot.fail_spectator.add("puuid-1")
    async with test_session_factory() as db:
        with pytest.raises(ExternalAPIError):
            await tracking.check_spectator(db, fake_riot, bootcamper.id)


async def test_cleanup_stale_games(make_bootcamper, fake_riot, test_session_factory):
    stale = await make_bootcamper(puuid="p-stale", status="in_game", last_game_id="1")
    live = await make_bootcamper(puuid="p-live", status="in_game", last_game_id="2")
    broken = await make_bootcamper(puuid="p-broken", status="in_game", last_game_id="3")
    fake_riot.active_games["p-live"] = _active_game(2, "p-live")
    fake_riot.fail_spectator.add("p-broken")
    async with test_session_factory() as db:
        db.add(Game(riot_game_id="1", bootcamper_id=stale.id, status="live"))
        await db.commit()

    async with test_session_factory() as db:
        assert await tracking.cleanup_stale_games(db, fake_riot) == 1

    assert (await _bootcamper(test_session_factory, stale.id)).status == "idle"
    assert (await _bootcamper(test_session_factory, live.id)).status == "in_game"
    assert (await _bootcamper(test_session_factory, broken.id)).status == "in_game"
    [game] = await _games(test_session_factory, stale.id)
    assert game.status == "completed"


# ─── Match data ─────────────────────────────────────────────────

async def test_fetch_match_data_stores_payload(make_bootcamper, fake_riot, test_session_factory):
    bootcamper = await make_bootcamper()
    async with test_session_factory() as db:
        db.add(Game(riot_game_id="9001", bootcamper_id=bootcamper.id, status="completed"))
        await db.commit()

    async with test_session_factory() as db:
        assert await tracking.fetch_match_data(db, fake_riot, bootcamper.id, "9001", "kr") is False

    fake_riot.matches["9001"] = {"info": {"gameDuration": 1800}}
    async with test_session_factory() as db:
        assert await tracking.fetch_match_data(db, fake_riot, bootcamper.id, "9001", "kr") is True
    [game] = await _games(test_session_factory, bootcamper.id)
    assert game.match_data == {"info": {"gameDuration": 1800}}


# ─── Summoner name ──────────────────────────────────────────────

async def test_update_summoner_name(make_bootcamper, fake_riot, test_session_factory):
    bootcamper = await make_bootcamper(puuid="p-1", summoner_name="Old", riot_id=None)
    fake_riot.add_account("Hide on bush", "KR1", "p-1")

    async with test_session_factory() as db:
        change = await tracking.update_summoner_name(db, fake_riot, bootcamper.id)
    assert change["old_riot_id"] == "N/A"
    assert change["new_riot_id"] == "Hide on bush#KR1"
    row = await _bootcamper(test_session_factory, bootcamper.id)
    assert row.summoner_name == "Hide on bush"

    async with test_session_factory() as db:
        assert await tracking.update_summoner_name(db, fake_riot, bootcamper.id) is None


# ─── Twitch ─────────────────────────────────────────────────────

async def test_check_twitch_stream_online_then_offline(
    make_bootcamper, fake_twitch, test_session_factory,
):
    bootcamper = await make_bootcamper(twitch_user_id="tw-1", twitch_login="faker")
    fake_twitch.streams["tw-1"] = {
        "user_id": "tw-1", "user_login": "faker", "title": "soloq grind",
        "started_at": "2024-03-01T10:00:00Z",
    }

    async with test_session_factory() as db:
        assert await tracking.check_twitch_stream(db, fake_twitch, bootcamper.id) is True
    async with test_session_factory() as db:
        [stream] = (await db.execute(select(TwitchStream))).scalars().all()
    assert stream.live is True
    assert stream.title == "soloq grind"

    del fake_twitch.streams["tw-1"]
    async with test_session_factory() as db:
        assert await tracking.check_twitch_stream(db, fake_twitch, bootcamper.id) is False
    async with test_session_factory() as db:
        [stream] = (await db.execute(select(TwitchStream))).scalars().all()
    assert stream.live is False


async def test_check_twitch_stream_without_account(make_bootcamper, fake_twitch, test_session_factory):
    bootcamper = await make_bootcamper()
    async with test_session_factory() as db:
        assert await tracking.check_twitch_stream(db, fake_twitch, bootcamper.id) is False
    assert fake_twitch.calls == []


# ─── Ranks ──────────────────────────────────────────────────────

def _solo(tier, rank="I", lp=0, wins=10, losses=5):
    return {
        "queueType": "RANKED_SOLO_5x5", "tier": tier, "rank": rank,
        "leaguePoints": lp, "wins": wins, "losses": losses,
    }


async def test_peak_rank_only_rises(make_bootcamper, fake_riot, test_session_factory):
    bootcamper = await make_bootcamper(puuid="p-1")
    fake_riot.league_entries["p-1"] = [_solo("DIAMOND", "II", 40)]
    async with test_session_factory() as db:
        assert await tracking.update_peak_rank(db, fake_riot, bootcamper.id) is True

    fake_riot.league_entries["p-1"] = [_solo("EMERALD", "I", 90)]
    async with test_session_factory() as db:
        assert await tracking.update_peak_rank(db, fake_riot, bootcamper.id) is False

    row = await _bootcamper(test_session_factory, bootcamper.id)
    assert (row.peak_solo_tier, row.peak_solo_rank, row.peak_solo_lp) == ("DIAMOND", "II", 40)
    assert row.peak_updated_at is not None


async def test_current_rank_keeps_data_when_queue_missing(
    make_bootcamper, fake_riot, test_session_factory,
):
    bootcamper = await make_bootcamper(puuid="p-1")
    fake_riot.league_entries["p-1"] = [_solo("GOLD", "III", 55)]
    async with test_session_factory() as db:
        await tracking.update_current_rank(db, fake_riot, bootcamper.id)
    row = await _bootcamper(test_session_factory, bootcamper.id)
    assert (row.current_solo_tier, row.current_solo_lp, row.current_solo_wins) == ("GOLD", 55, 10)

    fake_riot.league_entries["p-1"] = []
    async with test_session_factory() as db:
        await tracking.update_current_rank(db, fake_riot, bootcamper.id)
    assert (await _bootcamper(test_session_factory, bootcamper.id)).current_solo_tier == "GOLD"


async def test_current_rank_failure_writes_nothing(make_bootcamper, fake_riot, test_session_factory):
    bootcamper = await make_bootcamper(puuid="p-1", current_solo_tier="GOLD")
    fake_riot.fail_league.add("p-1")
    async with test_session_factory() as db:
        with pytest.raises(ExternalAPIError):
            await tracking.update_current_rank(db, fake_riot, bootcamper.id)
    row = await _bootcamper(test_session_factory, bootcamper.id)
    assert row.current_solo_tier == "GOLD"
    assert row.rank_updated_at is None


async def test_active_clause_honours_actual_end_date(make_bootcamper, test_session_factory):
    now = datetime.now(timezone.utc)
    extended = await make_bootcamper(
        planned_end_date=now - timedelta(days=1), actual_end_date=now + timedelta(days=3),
    )
    await make_bootcamper(start_date=now + timedelta(days=1))
    async with test_session_factory() as db:
        ids = (await db.execute(
            select(Bootcamper.id).where(tracking.active_bootcamper_clause(now))
        )).scalars().all()
    assert ids == [extended.id]


# ─── Play-rates ─────────────────────────────────────────────────

async def test_refresh_playrates_upserts(fake_static_data, test_session_factory):
    fake_static_data.summary = [{"id": -1}, {"id": 1}, {"id": 2}]
    fake_static_data.script = '{"TOP":{"1":0.5},"JUNGLE":{"2":0.9}}'
    async with test_session_factory() as db:
        db.add(ChampionPlayrate(champion_id=1, top_rate=1.0, patch="13.1"))
        await db.commit()

    async with test_session_factory() as db:
        assert await refresh_playrates(db, fake_static_data) == 2
    async with test_session_factory() as db:
        rates = await load_playrates(db)
        patches = (await db.execute(select(ChampionPlayrate.patch))).scalars().all()
    assert rates[1].top == 50.0
    assert rates[2].jungle == 90.0
    assert set(patches) == {"14.3"}
