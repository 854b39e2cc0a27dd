"""Client Factories — build the Riot/Twitch/static-data clients from Settings.

Invariants:
    - Riot and Twitch factories return None when their credentials are unset
    - Retry and timeout knobs always come from Settings
"""

from bootcamp_tracker.config import Settings
from bootcamp_tracker.infrastructure.riot_client import RiotClient
from bootcamp_tracker.infrastructure.static_data import StaticDataClient
from bootcamp_tracker.infrastructure.twitch_client import TwitchClient


def _retry_kwargs(settings: Settings) -> dict:
    return {
        "timeout_seconds": settings.http_timeout_seconds,
        "max_retries": settings.http_max_retries,
        "base_delay_ms": settings.http_base_delay_ms,
        "max_delay_ms": settings.http_max_delay_ms,
    }


def build_riot_client(settings: Settings) -> RiotClient | None:
    if not settings.riot_api_key:
        return None
    return RiotClient(settings.riot_api_key, **_retry_kwargs(settings))


def build_twitch_client(settings: Settings) -> TwitchClient | None:
    if not (settings.twitch_client_id and settings.twitch_client_secret):
        return None
    return TwitchClient(
        settings.twitch_client_id, settings.twitch_client_secret, **_retry_kwargs(settings),
    )


def build_static_data_client(settings: Settings) -> StaticDataClient:
    return StaticDataClient(
        timeout_seconds=settings.http_timeout_seconds,
        max_retries=settings.http_max_retries,
    )
