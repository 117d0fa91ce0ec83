"""Add skill display color and daily-update notes.

Existing skills keep a NULL color; the API reports the default color for them.

Revision ID: 002
Revises: 001
Create Date: 2025-04-02 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("skill_learnings") as batch_op:
        batch_op.add_column(sa.Column("color", sa.String(), nullable=True))

    op.create_table(
        "skill_daily_updates",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "skill_id",
            sa.Integer(),
            sa.ForeignKey("skill_learnings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_skill_daily_updates_skill_id", "skill_daily_updates", ["skill_id"])


def downgrade() -> None:
    op.drop_index("ix_skill_daily_updates_skill_id", table_name="skill_daily_updates")
    op.drop_table("skill_daily_updates")
    with op.batch_alter_table("skill_learnings") as batch_op:
        batch_op.drop_column("color")
