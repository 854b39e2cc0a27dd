"""Initial schema — users, bootcampers, games, twitch_streams.

Revision ID: 001_initial
Revises: None
Create Date: 2026-09-28

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("username", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "bootcampers",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("riot_id", sa.String(64), nullable=True),
        sa.Column("summoner_name", sa.String(64), nullable=False),
        sa.Column("summoner_id", sa.String(128), nullable=True),
        sa.Column("puuid", sa.String(128), nullable=False),
        sa.Column("region", sa.String(8), nullable=False),
        sa.Column("twitch_login", sa.String(64), nullable=True),
        sa.Column("twitch_user_id", sa.String(32), nullable=True),
        sa.Column("twitch_profile_image", sa.LargeBinary, nullable=True),
        sa.Column("role", sa.String(20), nullable=True),
        sa.Column("name", sa.String(64), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("planned_end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actual_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="idle"),
        sa.Column("last_game_id", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_bootcampers_puuid", "bootcampers", ["puuid"])
    op.create_index("ix_bootcampers_twitch_user_id", "bootcampers", ["twitch_user_id"])

    op.create_table(
        "games",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("riot_game_id", sa.String(32), nullable=False),
        sa.Column(
            "bootcamper_id", UUID(as_uuid=True),
            sa.ForeignKey("bootcampers.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="in_progress"),
        sa.Column("match_data", sa.JSON, nullable=True),
        sa.UniqueConstraint(
            "riot_game_id", "bootcamper_id", name="games_riot_game_id_bootcamper_id_key",
        ),
    )
    op.create_index("ix_games_bootcamper_id", "games", ["bootcamper_id"])

    op.create_table(
        "twitch_streams",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "bootcamper_id", UUID(as_uuid=True),
            sa.ForeignKey("bootcampers.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("twitch_user_id", sa.String(32), nullable=False),
        sa.Column("stream_url", sa.String(255), nullable=True),
        sa.Column("live", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_checked", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_twitch_streams_bootcamper_id", "twitch_streams", ["bootcamper_id"])


def downgrade() -> None:
    op.drop_table("twitch_streams")
    op.drop_table("games")
    op.drop_table("bootcampers")
    op.drop_table("users")
