"""TwitchStream ORM — stream sessions reported by EventSub or Helix polling.

Invariants:
    - live=True rows have ended_at None
    - stream_url is https://www.twitch.tv/<login>
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from bootcamp_tracker.db.base import Base


class TwitchStream(Base):
    __tablename__ = "twitch_streams"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    bootcamper_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bootcampers.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    twitch_user_id: Mapped[str] = mapped_column(String(32), nullable=False)
    stream_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    live: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    ended_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    last_checked: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    bootcamper: Mapped["Bootcamper"] = relationship(
        "Bootcamper", back_populates="twitch_streams",
    )
