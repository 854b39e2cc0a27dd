"""Twitch Helix Client — app access token, users, streams and EventSub subscriptions.

Invariants:
    - App token obtained via client_credentials and cached until 300 s before expiry
    - Token refresh is serialized by a lock: concurrent callers share one refresh
    - A 401 from Helix drops the cached token and retries the call once
    - Every Helix call sends Authorization: Bearer <token> and Client-Id
"""

import asyncio
import logging
import time

import httpx

from bootcamp_tracker.core.domain_types import EventSubType
from bootcamp_tracker.core.errors import ExternalAPIError
from bootcamp_tracker.infrastructure.http_client import ResilientHTTPClient

logger = logging.getLogger(__name__)

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
HELIX_BASE_URL = "https://api.twitch.tv/helix"

_TOKEN_EXPIRY_MARGIN_SECONDS = 300


class TwitchClient(ResilientHTTPClient):
    service = "twitch"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            base_delay_ms=base_delay_ms,
            max_delay_ms=max_delay_ms,
            transport=transport,
        )
        self.client_id = client_id
        self.client_secret = client_secret
        self._access_token: str | None = None
        self._token_expires_at: float = 0.0
        self._token_lock = asyncio.Lock()

    async def _get_access_token(self) -> str:
        async with self._token_lock:
            if self._access_token and time.monotonic() < self._token_expires_at:
                return self._access_token
            response = await self.request(
                "POST", TOKEN_URL,
                params={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "grant_type": "client_credentials",
                },
            )
            data = response.json()
            self._access_token = data["access_token"]
            self._token_expires_at = (
                time.monotonic() + data.get("expires_in", 0) - _TOKEN_EXPIRY_MARGIN_SECONDS
            )
            logger.info("Twitch app access token refreshed", extra={"service": self.service})
            return self._access_token

    async def _helix(
        self, method: str, path: str, *, params=None, json=None,
    ) -> httpx.Response:
        for refreshed in (False, True):
            token = await self._get_access_token()
            headers = {"Authorization": f"Bearer {token}", "Client-Id": self.client_id}
            try:
                return await self.request(
                    method, HELIX_BASE_URL + path,
                    params=params, json=json, headers=headers,
                )
            except ExternalAPIError as e:
                if e.status_code != 401 or refreshed:
                    raise
                self._access_token = None
        raise ExternalAPIError(self.service, "Unauthorized after token refresh", 401)

    # ─── Users ──────────────────────────────────────────────────

    async def get_users_by_login(self, logins: list[str]) -> list[dict]:
        if not logins:
            return []
        response = await self._helix(
            "GET", "/users", params=[("login", login) for login in logins],
        )
        return response.json().get("data", [])

    async def get_user_by_login(self, login: str) -> dict | None:
        users = await self.get_users_by_login([login])
        return users[0] if users else None

    # ─── Streams ────────────────────────────────────────────────

    async def get_streams(self, user_ids: list[str]) -> list[dict]:
        if not user_ids:
            return []
        response = await self._helix(
            "GET", "/streams", params=[("user_id", i) for i in user_ids],
        )
        return response.json().get("data", [])

    # ─── EventSub ───────────────────────────────────────────────

    async def create_eventsub_subscription(
        self,
        sub_type: EventSubType,
        broadcaster_user_id: str,
        callback_url: str,
        secret: str,
    ) -> dict:
        body = {
            "type": sub_type.value,
            "version": "1",
            "condition": {"broadcaster_user_id": broadcaster_user_id},
            "transport": {"method": "webhook", "callback": callback_url, "secret": secret},
        }
        response = await self._helix("POST", "/eventsub/subscriptions", json=body)
        data = response.json().get("data", [])
        return data[0] if data else {}

    # ─── Assets ─────────────────────────────────────────────────

    async def download_image(self, url: str) -> bytes:
        response = await self.request("GET", url)
        return response.content
