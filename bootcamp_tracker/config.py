"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): one instance per process
    - Optional integrations (Riot, Twitch) default to empty; callers raise
      ConfigurationError when they are needed but unset

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    environment: str = "development"

    # Database
    database_url: str = (
        "postgresql+asyncpg://bootcamp:bootcamp@db:5432/bootcamp"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if isinstance(v, str) and v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Sessions
    session_secret_key: str = "dev-insecure-session-key"
    session_max_age_seconds: int = 60 * 60 * 24 * 30
    session_cookie_name: str = "bootcamp_session"

    # Riot
    riot_api_key: str = ""

    # Twitch
    twitch_client_id: str = ""
    twitch_client_secret: str = ""
    twitch_callback_url: str = ""
    twitch_eventsub_secret: str = ""

    # Outbound HTTP
    http_timeout_seconds: float = 10.0
    http_max_retries: int = 3
    http_base_delay_ms: int = 1000
    http_max_delay_ms: int = 30_000

    # Worker intervals (seconds)
    worker_sync_interval_seconds: int = 120
    worker_spectator_interval_seconds: int = 60
    worker_twitch_interval_seconds: int = 60
    worker_name_interval_seconds: int = 3600
    worker_rank_interval_seconds: int = 300
    worker_playrate_interval_seconds: int = 86_400
    worker_stale_cleanup_interval_seconds: int = 300

    # Admin bootstrap
    default_admin_username: str = ""

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
