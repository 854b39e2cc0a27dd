"""Game ORM — one row per (Riot game, bootcamper) pair.

Invariants:
    - (riot_game_id, bootcamper_id) is unique
    - status is in_progress or completed; legacy "live" counts as active
    - match_data holds the enriched lobby while active, the Match-V5 payload after
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from bootcamp_tracker.db.base import Base


class Game(Base):
    __tablename__ = "games"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    riot_game_id: Mapped[str] = mapped_column(String(32), nullable=False)
    bootcamper_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bootcampers.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    ended_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="in_progress",
    )
    match_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    bootcamper: Mapped["Bootcamper"] = relationship(
        "Bootcamper", back_populates="games",
    )

    __table_args__ = (
        UniqueConstraint(
            "riot_game_id", "bootcamper_id", name="games_riot_game_id_bootcamper_id_key",
        ),
    )
