"""Static Game Data — Data Dragon champion names and Community Dragon play-rate sources.

Invariants:
    - Champion name map is fetched once per process and cached (key -> name)
    - Raw payloads only; parsing lives in core/playrates.py
"""

import asyncio
import logging

import httpx

from bootcamp_tracker.infrastructure.http_client import ResilientHTTPClient

logger = logging.getLogger(__name__)

DATA_DRAGON_CHAMPIONS_URL = (
    "https://ddragon.leagueoflegends.com/cdn/13.24.1/data/en_US/champion.json"
)
CDRAGON_BASE_URL = "https://raw.communitydragon.org/latest"
CHAMPION_SUMMARY_URL = (
    f"{CDRAGON_BASE_URL}/plugins/rcp-be-lol-game-data/global/default/v1/champion-summary.json"
)
CHAMPION_STATISTICS_URL = (
    f"{CDRAGON_BASE_URL}/plugins/rcp-fe-lol-champion-statistics/global/default/"
    "rcp-fe-lol-champion-statistics.js"
)
CONTENT_METADATA_URL = f"{CDRAGON_BASE_URL}/content-metadata.json"


class StaticDataClient(ResilientHTTPClient):
    service = "static-data"

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            transport=transport,
        )
        self._champion_names: dict[int, str] | None = None
        self._names_lock = asyncio.Lock()

    async def champion_names(self) -> dict[int, str]:
        """Champion numeric key -> display name."""
        async with self._names_lock:
            if self._champion_names is None:
                payload = await self.get_json(DATA_DRAGON_CHAMPIONS_URL)
                self._champion_names = {
                    int(champ["key"]): champ["name"]
                    for champ in payload.get("data", {}).values()
                }
                logger.info(
                    f"Loaded {len(self._champion_names)} champion names",
                    extra={"service": self.service},
                )
            return self._champion_names

    async def champion_name(self, champion_id: int) -> str | None:
        names = await self.champion_names()
        return names.get(champion_id)

    async def champion_summary(self) -> list[dict]:
        return await self.get_json(CHAMPION_SUMMARY_URL)

    async def champion_statistics_script(self) -> str:
        response = await self.request("GET", CHAMPION_STATISTICS_URL)
        return response.text

    async def content_version(self) -> str:
        payload = await self.get_json(CONTENT_METADATA_URL)
        return payload["version"]
