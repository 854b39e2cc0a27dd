"""Outbound HTTP — retry policy, Riot routing and Twitch token handling over httpx.MockTransport."""

import httpx
import pytest

from bootcamp_tracker.core.domain_types import EventSubType
from bootcamp_tracker.core.errors import ExternalAPIError, ValidationFailedError
from bootcamp_tracker.infrastructure.http_client import ResilientHTTPClient
from bootcamp_tracker.infrastructure.riot_client import RiotClient
from bootcamp_tracker.infrastructure.twitch_client import TwitchClient


class Recorder:
    """Replays queued responses and records every request."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def _client(recorder: Recorder, max_retries: int = 2) -> ResilientHTTPClient:
    return ResilientHTTPClient(
        transport=recorder.transport, max_retries=max_retries, base_delay_ms=1, max_delay_ms=5,
    )


# ─── Retry policy ───────────────────────────────────────────────

async def test_retries_rate_limit_then_succeeds():
    recorder = Recorder(
        httpx.Response(429, headers={"Retry-After": "0"}),
        httpx.Response(200, json={"ok": True}),
    )
    client = _client(recorder)
    assert await client.get_json("https://api.test/x") == {"ok": True}
    assert len(recorder.requests) == 2
    await client.aclose()


async def test_rate_limit_exhausted_raises_429():
    client = _client(Recorder(httpx.Response(429, headers={"Retry-After": "0"})), max_retries=1)
    with pytest.raises(ExternalAPIError) as exc_info:
        await client.get_json("https://api.test/x")
    assert exc_info.value.status_code == 429


async def test_server_errors_are_retried():
    recorder = Recorder(httpx.Response(503), httpx.Response(502), httpx.Response(200, json=[1]))
    client = _client(recorder)
    assert await client.get_json("https://api.test/x") == [1]
    assert len(recorder.requests) == 3


async def test_server_errors_exhaust_retries():
    recorder = Recorder(httpx.Response(500))
    client = _client(recorder, max_retries=2)
    with pytest.raises(ExternalAPIError) as exc_info:
        await client.get_json("https://api.test/x")
    assert exc_info.value.status_code == 500
    assert len(recorder.requests) == 3


async def test_client_error_fails_immediately():
    recorder = Recorder(httpx.Response(400))
    client = _client(recorder)
    with pytest.raises(ExternalAPIError) as exc_info:
        await client.get_json("https://api.test/x")
    assert exc_info.value.status_code == 400
    assert len(recorder.requests) == 1


async def test_allowed_404_returns_none():
    client = _client(Recorder(httpx.Response(404)))
    assert await client.get_json("https://api.test/x", allow_404=True) is None
    with pytest.raises(ExternalAPIError):
        await client.get_json("https://api.test/x")


async def test_connection_errors_are_retried():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        if calls["n"] == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={})

    client = ResilientHTTPClient(
        transport=httpx.MockTransport(handler), base_delay_ms=1, max_delay_ms=5,
    )
    assert await client.get_json("https://api.test/x") == {}
    assert calls["n"] == 2


async def test_timeouts_are_not_retried():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        raise httpx.ReadTimeout("slow", request=request)

    client = ResilientHTTPClient(transport=httpx.MockTransport(handler), base_delay_ms=1)
    with pytest.raises(ExternalAPIError):
        await client.get_json("https://api.test/x")
    assert calls["n"] == 1


def test_backoff_is_capped():
    client = ResilientHTTPClient(base_delay_ms=1000, max_delay_ms=2000)
    assert all(1500 <= client._backoff(5) <= 2500 for _ in range(20))


# ─── Riot ───────────────────────────────────────────────────────

async def test_riot_routes_platform_and_regional_hosts():
    def handler(request):
        path = request.url.path
        if path.startswith("/riot/account/v1/accounts/by-riot-id/"):
            return httpx.Response(
                200, json={"puuid": "p-1", "gameName": "Hide on bush", "tagLine": "KR1"},
            )
        if path.startswith("/lol/summoner/v4/summoners/by-puuid/"):
            return httpx.Response(200, json={"id": "summ-1"})
        return httpx.Response(404)

    transport = httpx.MockTransport(handler)
    riot = RiotClient("RGAPI-test", transport=transport, base_delay_ms=1)
    resolved = await riot.resolve_riot_id("kr", "Hide on bush#KR1")
    assert resolved == {
        "puuid": "p-1", "game_name": "Hide on bush", "tag_line": "KR1", "summoner_id": "summ-1",
    }


async def test_riot_request_details():
    recorder = Recorder(httpx.Response(404))
    riot = RiotClient("RGAPI-test", transport=recorder.transport, base_delay_ms=1)

    assert await riot.get_active_game("euw1", "p-1") is None
    assert await riot.get_league_entries("euw1", "p-1") == []
    assert await riot.get_match("euw1", 123) is None

    spectator, league, match = recorder.requests
    assert spectator.url.host == "euw1.api.riotgames.com"
    assert spectator.headers["X-Riot-Token"] == "RGAPI-test"
    assert league.url.path == "/lol/league/v4/entries/by-puuid/p-1"
    assert match.url.host == "europe.api.riotgames.com"
    assert match.url.path == "/lol/match/v5/matches/EUW1_123"


async def test_riot_rejects_unknown_region():
    riot = RiotClient("RGAPI-test", transport=Recorder(httpx.Response(200)).transport)
    with pytest.raises(ValidationFailedError):
        await riot.get_active_game("moon1", "p-1")


# ─── Twitch ─────────────────────────────────────────────────────

def _twitch_handler(state: dict):
    def handler(request):
        if request.url.host == "id.twitch.tv":
            state["tokens"] += 1
            return httpx.Response(200, json={
                "access_token": f"token-{state['tokens']}", "expires_in": 3600,
            })
        state["auth"].append(request.headers["Authorization"])
        if state.get("reject_first") and len(state["auth"]) == 1:
            return httpx.Response(401)
        if request.url.path == "/helix/users":
            return httpx.Response(200, json={"data": [{"id": "tw-1", "login": "faker"}]})
        if request.url.path == "/helix/eventsub/subscriptions":
            return httpx.Response(202, json={"data": [{"id": "sub-1", "status": "pending"}]})
        return httpx.Response(200, json={"data": []})
    return handler


async def test_twitch_token_is_cached():
    state = {"tokens": 0, "auth": []}
    twitch = TwitchClient("cid", "secret", transport=httpx.MockTransport(_twitch_handler(state)))
    assert (await twitch.get_user_by_login("faker"))["id"] == "tw-1"
    assert await twitch.get_streams(["tw-1"]) == []
    assert state["tokens"] == 1
    assert state["auth"] == ["Bearer token-1", "Bearer token-1"]


async def test_twitch_refreshes_token_on_401():
    state = {"tokens": 0, "auth": [], "reject_first": True}
    twitch = TwitchClient("cid", "secret", transport=httpx.MockTransport(_twitch_handler(state)))
    assert (await twitch.get_user_by_login("faker"))["login"] == "faker"
    assert state["tokens"] == 2
    assert state["auth"] == ["Bearer token-1", "Bearer token-2"]


async def test_twitch_empty_queries_skip_the_network():
    state = {"tokens": 0, "auth": []}
    twitch = TwitchClient("cid", "secret", transport=httpx.MockTransport(_twitch_handler(state)))
    assert await twitch.get_streams([]) == []
    assert await twitch.get_users_by_login([]) == []
    assert state["tokens"] == 0


async def test_twitch_creates_eventsub_subscription():
    state = {"tokens": 0, "auth": []}
    twitch = TwitchClient("cid", "secret", transport=httpx.MockTransport(_twitch_handler(state)))
    sub = await twitch.create_eventsub_subscription(
        EventSubType.STREAM_ONLINE, "tw-1", "https://tracker.test/cb", "s3cret",
    )
    assert sub == {"id": "sub-1", "status": "pending"}
