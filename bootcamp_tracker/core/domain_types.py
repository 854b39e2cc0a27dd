"""Domain Types — enums and lookup tables shared across the codebase.

Invariants:
    - All valid states encoded as Enums, no raw string matching
    - REGION_TO_PLATFORM covers every RiotRegion

Design Decisions:
    - str Enums: serialize to JSON and store in String columns without custom encoders
"""

from enum import Enum


class BootcamperRole(str, Enum):
    """Roster role of a bootcamper."""
    PRO = "pro"
    STREAMER = "streamer"
    ROOKIE = "rookie"


class BootcamperStatus(str, Enum):
    """Live-game state — maps to bootcampers.status."""
    IDLE = "idle"
    IN_GAME = "in_game"


class GameStatus(str, Enum):
    """Game lifecycle. LIVE is the legacy spelling of IN_PROGRESS."""
    LIVE = "live"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


ACTIVE_GAME_STATUSES = (GameStatus.LIVE.value, GameStatus.IN_PROGRESS.value)


class ListType(str, Enum):
    """Which roster a request targets."""
    DEFAULT = "default"
    USER = "user"


class Position(str, Enum):
    """Summoner's Rift position, as named by the Riot match API."""
    TOP = "TOP"
    JUNGLE = "JUNGLE"
    MIDDLE = "MIDDLE"
    BOTTOM = "BOTTOM"
    UTILITY = "UTILITY"


class QueueType(str, Enum):
    """Ranked queues tracked for bootcampers."""
    SOLO = "RANKED_SOLO_5x5"
    FLEX = "RANKED_FLEX_SR"


class RiotRegion(str, Enum):
    """Riot platform routing values (per-shard hosts)."""
    KR = "kr"
    NA1 = "na1"
    EUW1 = "euw1"
    EUN1 = "eun1"
    BR1 = "br1"
    JP1 = "jp1"
    LA1 = "la1"
    LA2 = "la2"
    OC1 = "oc1"
    TR1 = "tr1"
    RU = "ru"


class PlatformRegion(str, Enum):
    """Riot regional routing values (account and match APIs)."""
    AMERICAS = "americas"
    ASIA = "asia"
    EUROPE = "europe"
    SEA = "sea"


REGION_TO_PLATFORM: dict[RiotRegion, PlatformRegion] = {
    RiotRegion.KR: PlatformRegion.ASIA,
    RiotRegion.NA1: PlatformRegion.AMERICAS,
    RiotRegion.EUW1: PlatformRegion.EUROPE,
    RiotRegion.EUN1: PlatformRegion.EUROPE,
    RiotRegion.BR1: PlatformRegion.AMERICAS,
    RiotRegion.JP1: PlatformRegion.ASIA,
    RiotRegion.LA1: PlatformRegion.AMERICAS,
    RiotRegion.LA2: PlatformRegion.AMERICAS,
    RiotRegion.OC1: PlatformRegion.SEA,
    RiotRegion.TR1: PlatformRegion.EUROPE,
    RiotRegion.RU: PlatformRegion.EUROPE,
}


class EventSubMessageType(str, Enum):
    """Values of the Twitch-Eventsub-Message-Type header."""
    VERIFICATION = "webhook_callback_verification"
    NOTIFICATION = "notification"
    REVOCATION = "revocation"


class EventSubType(str, Enum):
    """Subscription types this service creates and handles."""
    STREAM_ONLINE = "stream.online"
    STREAM_OFFLINE = "stream.offline"
