"""Rank tracking — current and peak solo/flex rank snapshot on bootcampers.

Revision ID: 003_rank_tracking
Revises: 002_user_lists
Create Date: 2026-10-06

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "003_rank_tracking"
down_revision: Union[str, None] = "002_user_lists"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _rank_columns() -> list[sa.Column]:
    columns = []
    for queue in ("solo", "flex"):
        columns += [
            sa.Column(f"current_{queue}_tier", sa.String(16), nullable=True),
            sa.Column(f"current_{queue}_rank", sa.String(4), nullable=True),
            sa.Column(f"current_{queue}_lp", sa.Integer, nullable=True),
            sa.Column(f"current_{queue}_wins", sa.Integer, nullable=True),
            sa.Column(f"current_{queue}_losses", sa.Integer, nullable=True),
            sa.Column(f"peak_{queue}_tier", sa.String(16), nullable=True),
            sa.Column(f"peak_{queue}_rank", sa.String(4), nullable=True),
            sa.Column(f"peak_{queue}_lp", sa.Integer, nullable=True),
        ]
    columns += [
        sa.Column("rank_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("peak_updated_at", sa.DateTime(timezone=True), nullable=True),
    ]
    return columns


def upgrade() -> None:
    for column in _rank_columns():
        op.add_column("bootcampers", column)


def downgrade() -> None:
    for column in reversed(_rank_columns()):
        op.drop_column("bootcampers", column.name)
