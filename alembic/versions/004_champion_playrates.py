"""Champion play-rates — per-position rates used by role identification.

Revision ID: 004_champion_playrates
Revises: 003_rank_tracking
Create Date: 2026-10-09

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "004_champion_playrates"
down_revision: Union[str, None] = "003_rank_tracking"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "champion_playrates",
        sa.Column("champion_id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("top_rate", sa.Float, nullable=False, server_default="0"),
        sa.Column("jungle_rate", sa.Float, nullable=False, server_default="0"),
        sa.Column("mid_rate", sa.Float, nullable=False, server_default="0"),
        sa.Column("adc_rate", sa.Float, nullable=False, server_default="0"),
        sa.Column("support_rate", sa.Float, nullable=False, server_default="0"),
        sa.Column("patch", sa.String(16), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("champion_playrates")
