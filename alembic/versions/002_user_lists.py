"""Personal lists — default flag, ownership, linked copies, user_bootcampers, layouts.

Revision ID: 002_user_lists
Revises: 001_initial
Create Date: 2026-10-02

Bootcampers gain an owner and an is_default flag; (puuid, user_id) becomes the
uniqueness key so several users can track the same player.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "002_user_lists"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("bootcampers", sa.Column("is_default", sa.Boolean, nullable=False, server_default="false"))
    op.add_column("bootcampers", sa.Column(
        "user_id", UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE", name="bootcampers_user_id_fkey"),
        nullable=True,
    ))
    op.add_column("bootcampers", sa.Column(
        "linked_to_default_id", UUID(as_uuid=True),
        sa.ForeignKey("bootcampers.id", ondelete="SET NULL", name="bootcampers_linked_to_default_id_fkey"),
        nullable=True,
    ))
    op.create_index("ix_bootcampers_user_id", "bootcampers", ["user_id"])
    op.create_unique_constraint(
        "bootcampers_puuid_user_id_key", "bootcampers", ["puuid", "user_id"],
    )

    op.create_table(
        "user_bootcampers",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "bootcamper_id", UUID(as_uuid=True),
            sa.ForeignKey("bootcampers.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("name_override", sa.String(64), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("planned_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "user_id", "bootcamper_id", name="user_bootcampers_user_id_bootcamper_id_key",
        ),
    )
    op.create_index("ix_user_bootcampers_user_id", "user_bootcampers", ["user_id"])

    op.create_table(
        "user_layouts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        sa.Column("layout", sa.JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("user_layouts")
    op.drop_table("user_bootcampers")
    op.drop_constraint("bootcampers_puuid_user_id_key", "bootcampers", type_="unique")
    op.drop_index("ix_bootcampers_user_id", table_name="bootcampers")
    op.drop_column("bootcampers", "linked_to_default_id")
    op.drop_column("bootcampers", "user_id")
    op.drop_column("bootcampers", "is_default")
