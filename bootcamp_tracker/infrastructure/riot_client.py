"""Riot Games API Client — account, summoner, spectator, league and match endpoints.

Invariants:
    - Platform-routed calls (summoner, spectator, league) go to https://{region}.api.riotgames.com
    - Regional-routed calls (account, match) go to https://{americas|asia|europe|sea}.api.riotgames.com
    - Spectator 404 means "not in game" (None); league 404 means "unranked" ([])
    - Concurrency capped by a semaphore; retries and 429 handling come from ResilientHTTPClient

Design Decisions:
    - Region validated against RiotRegion before any request: unknown regions are a 400
"""

import asyncio
import logging
from urllib.parse import quote

import httpx

from bootcamp_tracker.core.domain_types import RiotRegion, REGION_TO_PLATFORM
from bootcamp_tracker.core.errors import ValidationFailedError
from bootcamp_tracker.core.formatting import match_id, parse_riot_id
from bootcamp_tracker.infrastructure.http_client import ResilientHTTPClient

logger = logging.getLogger(__name__)

_MAX_CONCURRENT_REQUESTS = 10


def riot_region(region: str) -> RiotRegion:
    try:
        return RiotRegion(region.lower())
    except ValueError:
        raise ValidationFailedError(f"Unknown region '{region}'")


class RiotClient(ResilientHTTPClient):
    """Typed access to the Riot endpoints the tracker uses."""

    service = "riot"

    def __init__(
        self,
        api_key: str,
        *,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            headers={"X-Riot-Token": api_key},
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            base_delay_ms=base_delay_ms,
            max_delay_ms=max_delay_ms,
            transport=transport,
        )
        self._semaphore = asyncio.Semaphore(_MAX_CONCURRENT_REQUESTS)

    @staticmethod
    def _platform_host(region: str) -> str:
        return f"https://{riot_region(region).value}.api.riotgames.com"

    @staticmethod
    def _regional_host(region: str) -> str:
        return f"https://{REGION_TO_PLATFORM[riot_region(region)].value}.api.riotgames.com"

    async def _get(self, url: str, **kwargs):
        async with self._semaphore:
            return await self.get_json(url, **kwargs)

    # ─── Account-V1 ─────────────────────────────────────────────

    async def get_account_by_riot_id(
        self, region: str, game_name: str, tag_line: str,
    ) -> dict | None:
        path = (
            f"/riot/account/v1/accounts/by-riot-id/"
            f"{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
        )
        return await self._get(self._regional_host(region) + path, allow_404=True)

    async def get_account_by_puuid(self, region: str, puuid: str) -> dict | None:
        path = f"/riot/account/v1/accounts/by-puuid/{puuid}"
        return await self._get(self._regional_host(region) + path, allow_404=True)

    # ─── Summoner-V4 ────────────────────────────────────────────

    async def get_summoner_by_puuid(self, region: str, puuid: str) -> dict | None:
        path = f"/lol/summoner/v4/summoners/by-puuid/{puuid}"
        return await self._get(self._platform_host(region) + path, allow_404=True)

    async def resolve_riot_id(self, region: str, riot_id: str) -> dict | None:
        """Riot ID -> {puuid, game_name, tag_line, summoner_id}; None if unknown."""
        game_name, tag_line = parse_riot_id(riot_id, region)
        account = await self.get_account_by_riot_id(region, game_name, tag_line)
        if not account:
            return None
        summoner = await self.get_summoner_by_puuid(region, account["puuid"]) or {}
        return {
            "puuid": account["puuid"],
            "game_name": account.get("gameName") or game_name,
            "tag_line": account.get("tagLine") or tag_line,
            "summoner_id": summoner.get("id"),
        }

    # ─── Spectator-V5 / League-V4 ───────────────────────────────

    async def get_active_game(self, region: str, puuid: str) -> dict | None:
        path = f"/lol/spectator/v5/active-games/by-summoner/{puuid}"
        return await self._get(self._platform_host(region) + path, allow_404=True)

    async def get_league_entries(self, region: str, puuid: str) -> list[dict]:
        path = f"/lol/league/v4/entries/by-puuid/{puuid}"
        entries = await self._get(self._platform_host(region) + path, allow_404=True)
        return entries or []

    # ─── Match-V5 ───────────────────────────────────────────────

    async def get_match(self, region: str, game_id: int | str) -> dict | None:
        path = f"/lol/match/v5/matches/{match_id(region, game_id)}"
        return await self._get(self._regional_host(region) + path, allow_404=True)
