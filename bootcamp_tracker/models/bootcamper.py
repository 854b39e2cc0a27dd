"""Bootcamper ORM — tracked players and users' personal-list associations.

Invariants:
    - (puuid, user_id) is unique: one record per player per owner
    - is_default marks the admin-curated list; user_id is the creator (admin for defaults)
    - linked_to_default_id points a user copy at its canonical default record
    - twitch_profile_image is deferred and never part of list payloads
    - Deleting a bootcamper deletes its games, streams and associations

Design Decisions:
    - Rank snapshot denormalized onto the bootcamper: the roster grid sorts by it
    - UserBootcamper association over copying: a user's list can reference a default
      bootcamper while keeping its own name override and dates
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Integer, Boolean, DateTime, LargeBinary, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from bootcamp_tracker.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Bootcamper(Base):
    __tablename__ = "bootcampers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    riot_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    summoner_name: Mapped[str] = mapped_column(String(64), nullable=False)
    summoner_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    puuid: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    region: Mapped[str] = mapped_column(String(8), nullable=False)

    twitch_login: Mapped[str | None] = mapped_column(String(64), nullable=True)
    twitch_user_id: Mapped[str | None] = mapped_column(
        String(32), nullable=True, index=True,
    )
    twitch_profile_image: Mapped[bytes | None] = mapped_column(
        LargeBinary, nullable=True, deferred=True,
    )

    role: Mapped[str | None] = mapped_column(String(20), nullable=True)
    name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    planned_end_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    actual_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="idle")
    last_game_id: Mapped[str | None] = mapped_column(String(32), nullable=True)

    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    linked_to_default_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bootcampers.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Current rank
    current_solo_tier: Mapped[str | None] = mapped_column(String(16), nullable=True)
    current_solo_rank: Mapped[str | None] = mapped_column(String(4), nullable=True)
    current_solo_lp: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_solo_wins: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_solo_losses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_flex_tier: Mapped[str | None] = mapped_column(String(16), nullable=True)
    current_flex_rank: Mapped[str | None] = mapped_column(String(4), nullable=True)
    current_flex_lp: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_flex_wins: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_flex_losses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rank_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # Peak rank
    peak_solo_tier: Mapped[str | None] = mapped_column(String(16), nullable=True)
    peak_solo_rank: Mapped[str | None] = mapped_column(String(4), nullable=True)
    peak_solo_lp: Mapped[int | None] = mapped_column(Integer, nullable=True)
    peak_flex_tier: Mapped[str | None] = mapped_column(String(16), nullable=True)
    peak_flex_rank: Mapped[str | None] = mapped_column(String(4), nullable=True)
    peak_flex_lp: Mapped[int | None] = mapped_column(Integer, nullable=True)
    peak_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    # Relationships (never touched from async code outside flush; queried explicitly)
    games: Mapped[list["Game"]] = relationship(
        "Game", back_populates="bootcamper", cascade="all, delete-orphan",
    )
    twitch_streams: Mapped[list["TwitchStream"]] = relationship(
        "TwitchStream", back_populates="bootcamper", cascade="all, delete-orphan",
    )
    user_associations: Mapped[list["UserBootcamper"]] = relationship(
        "UserBootcamper", back_populates="bootcamper", cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("puuid", "user_id", name="bootcampers_puuid_user_id_key"),
    )


class UserBootcamper(Base):
    """A user's personal-list entry pointing at a default bootcamper."""
    __tablename__ = "user_bootcampers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    bootcamper_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bootcampers.id", ondelete="CASCADE"),
        nullable=False,
    )
    name_override: Mapped[str | None] = mapped_column(String(64), nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    planned_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    bootcamper: Mapped["Bootcamper"] = relationship(
        "Bootcamper", back_populates="user_associations", lazy="joined",
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "bootcamper_id", name="user_bootcampers_user_id_bootcamper_id_key",
        ),
    )
