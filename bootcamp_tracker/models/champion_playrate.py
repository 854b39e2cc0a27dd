"""ChampionPlayrate ORM — per-position play-rate percentages, refreshed daily."""

from datetime import datetime, timezone

from sqlalchemy import Integer, Float, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from bootcamp_tracker.db.base import Base


class ChampionPlayrate(Base):
    __tablename__ = "champion_playrates"

    champion_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False,
    )
    top_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    jungle_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    mid_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    adc_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    support_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    patch: Mapped[str] = mapped_column(String(16), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
