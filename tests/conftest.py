"""Root conftest — shared test configuration."""

import os

# Ensure tests never use real credentials or a real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("TWITCH_EVENTSUB_SECRET", "test-eventsub-secret")
os.environ.setdefault("TWITCH_CALLBACK_URL", "https://tracker.test/api/webhooks/twitch")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_FORMAT", "text")
