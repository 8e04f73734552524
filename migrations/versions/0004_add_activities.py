"""add activity feed"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0004_add_activities"
down_revision = "0003_add_occurrences"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=True),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("actor_admin_id", sa.Integer(), nullable=True),
        sa.Column("actor_employee_id", sa.Integer(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_activities_organization_id", "activities", ["organization_id"], unique=False)
    op.create_index("ix_activities_task_id", "activities", ["task_id"], unique=False)
    op.create_index("ix_activities_kind", "activities", ["kind"], unique=False)
    op.create_index("ix_activities_actor_employee_id", "activities", ["actor_employee_id"], unique=False)
    op.create_index("ix_activities_created_at", "activities", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_activities_created_at", table_name="activities")
    op.drop_index("ix_activities_actor_employee_id", table_name="activities")
    op.drop_index("ix_activities_kind", table_name="activities")
    op.drop_index("ix_activities_task_id", table_name="activities")
    op.drop_index("ix_activities_organization_id", table_name="activities")
    op.drop_table("activities")
