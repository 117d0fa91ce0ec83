"""Create job, research and skill tables.

Revision ID: 001
Revises: None
Create Date: 2025-03-30 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "job_applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_name", sa.String(), nullable=False),
        sa.Column("position_name", sa.String(), nullable=False),
        sa.Column("apply_date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("required_skills", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_job_applications_id", "job_applications", ["id"])
    op.create_index("ix_job_applications_apply_date", "job_applications", ["apply_date"])

    op.create_table(
        "research_applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("university_name", sa.String(), nullable=False),
        sa.Column("professor_name", sa.String(), nullable=False),
        sa.Column("research_field", sa.String(), nullable=False),
        sa.Column("apply_date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_research_applications_id", "research_applications", ["id"])
    op.create_index("ix_research_applications_apply_date", "research_applications", ["apply_date"])

    op.create_table(
        "skill_learnings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("skill_name", sa.String(), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("target_date", sa.DateTime(), nullable=True),
        sa.Column("progress", sa.Float(), nullable=False, server_default="0"),
        sa.Column("resources", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_skill_learnings_id", "skill_learnings", ["id"])
    op.create_index("ix_skill_learnings_target_date", "skill_learnings", ["target_date"])


def downgrade() -> None:
    op.drop_table("skill_learnings")
    op.drop_table("research_applications")
    op.drop_table("job_applications")
