"""Case-insensitive username uniqueness.

Revision ID: 005_username_ci_index
Revises: 004_champion_playrates
Create Date: 2026-10-14

Registration checks lower(username) before insert; the unique functional index
closes the race between two concurrent registrations ("Alice" vs "alice").
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "005_username_ci_index"
down_revision: Union[str, None] = "004_champion_playrates"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_index(
        "users_username_ci_key", "users", [sa.text("lower(username)")], unique=True,
    )


def downgrade() -> None:
    op.drop_index("users_username_ci_key", table_name="users")
