"""Identifier Formatting — Riot IDs, Twitch URLs and match ids.

Invariants:
    - A Riot ID is "gameName#tagLine"; a bare name takes the region as its tag
    - as_utc never shifts an aware datetime; naive values are taken as UTC
"""

from datetime import datetime, timezone

TWITCH_BASE_URL = "https://www.twitch.tv"


def parse_riot_id(value: str, region: str) -> tuple[str, str]:
    """Split "Name#TAG" into (game_name, tag_line); tag defaults to REGION."""
    value = value.strip()
    if "#" in value:
        game_name, tag_line = value.split("#", 1)
        if tag_line:
            return game_name.strip(), tag_line.strip()
        value = game_name
    return value, region.upper()


def format_riot_id(value: str, region: str) -> str:
    """Riot ID as stored on a bootcamper: kept verbatim when it has a tag."""
    if "#" in value:
        return value
    return f"{value}#{region.upper()}"


def stream_url(login: str) -> str:
    return f"{TWITCH_BASE_URL}/{login}"


def match_id(region: str, game_id: int | str) -> str:
    """Match-V5 id: "KR_1234567890"."""
    return f"{region.upper()}_{game_id}"


def truncate_puuid(puuid: str | None, length: int = 8) -> str | None:
    if not puuid:
        return puuid
    return puuid[:length] + "..."


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite returns naive values)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def parse_timestamp(value: str | None) -> datetime | None:
    """ISO-8601 timestamp from Twitch ("...Z" suffix allowed) as aware UTC."""
    if not value:
        return None
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def from_epoch_ms(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
