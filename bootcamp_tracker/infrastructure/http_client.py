"""Resilient HTTP Client — httpx wrapper with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection): max_retries retries with exponential backoff
    - Timeouts and client errors (4xx except 429): immediate failure, no retry
    - Optional 404 passthrough returns None (Riot "not in game" / "unranked")
    - All failures mapped to ExternalAPIError (core/errors.py) tagged with the service name

Design Decisions:
    - One base class for Riot, Twitch and static-data clients: retry policy lives in one place
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
    - transport injectable: tests drive the real retry loop through httpx.MockTransport
"""

import asyncio
import random
import logging
from typing import Any

import httpx

from bootcamp_tracker.core.errors import ExternalAPIError, ErrorContext

logger = logging.getLogger(__name__)


class ResilientHTTPClient:
    """Wraps httpx.AsyncClient with retry logic, timeouts, and error mapping."""

    service = "http"

    def __init__(
        self,
        *,
        headers: dict[str, str] | None = None,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            headers=headers or {},
            timeout=timeout_seconds,
            transport=transport,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict | list | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        allow_404: bool = False,
        context: ErrorContext | None = None,
    ) -> httpx.Response | None:
        """Send a request with automatic retry on transient failures."""
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(
                    method, url, params=params, json=json, headers=headers,
                )
            except httpx.TimeoutException:
                raise ExternalAPIError(
                    self.service, f"Timeout calling {url}", context=context,
                )
            except httpx.TransportError as e:
                await self._handle_transient_error(e, None, attempt, context)
                continue

            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", response.status_code,
                    attempt, context,
                )
                continue
            if response.status_code == 404 and allow_404:
                return None
            if response.is_error:
                raise ExternalAPIError(
                    self.service,
                    f"HTTP {response.status_code} from {url}",
                    status_code=response.status_code,
                    context=context,
                )
            self._log_success(url, response, attempt)
            return response
        return None

    async def get_json(self, url: str, **kwargs) -> Any:
        """GET and decode JSON; None when allow_404 and the resource is missing."""
        response = await self.request("GET", url, **kwargs)
        if response is None:
            return None
        return response.json()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _log_success(self, url: str, response: httpx.Response, attempt: int) -> None:
        logger.debug(
            f"{self.service} request ok: {url}",
            extra={
                "service": self.service,
                "attempt": attempt + 1,
                "status_code": response.status_code,
            },
        )

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise ExternalAPIError(
                self.service,
                "Rate limit exceeded after retries",
                status_code=429,
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"{self.service} rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
            extra={"service": self.service, "attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self,
        error: Exception | str,
        status_code: int | None,
        attempt: int,
        context: ErrorContext | None,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise ExternalAPIError(
                self.service,
                f"Transient failure after {self.max_retries} retries: {error}",
                status_code=status_code,
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"{self.service} transient error, retry after {delay}ms: {error}",
            extra={"service": self.service, "attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.strip().isdigit():
            return int(val) * 1000
        return None
