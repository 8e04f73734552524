"""add occurrences of recurring tasks"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0003_add_occurrences"
down_revision = "0002_create_tasks"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "occurrences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "task_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="pending"),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("task_id", "seq", name="uq_occurrences_task_seq"),
    )
    op.create_index("ix_occurrences_task_id", "occurrences", ["task_id"], unique=False)
    op.create_index("ix_occurrences_organization_id", "occurrences", ["organization_id"], unique=False)
    op.create_index("ix_occurrences_status", "occurrences", ["status"], unique=False)
    op.create_table(
        "occurrence_assignees",
        sa.Column(
            "occurrence_id",
            sa.Integer(),
            sa.ForeignKey("occurrences.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )


def downgrade() -> None:
    op.drop_table("occurrence_assignees")
    op.drop_index("ix_occurrences_status", table_name="occurrences")
    op.drop_index("ix_occurrences_organization_id", table_name="occurrences")
    op.drop_index("ix_occurrences_task_id", table_name="occurrences")
    op.drop_table("occurrences")
