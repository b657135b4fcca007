"""add task type and recurrence fields"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0003_add_recurrence"
down_revision = "0002_create_tasks"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "tasks",
        sa.Column("task_type", sa.String(length=20), nullable=False, server_default="one-time"),
    )
    op.add_column("tasks", sa.Column("recurrence_pattern", sa.String(length=20), nullable=True))
    op.add_column("tasks", sa.Column("recurrence_interval", sa.Integer(), nullable=True))


def downgrade() -> None:
    op.drop_column("tasks", "recurrence_interval")
    op.drop_column("tasks", "recurrence_pattern")
    op.drop_column("tasks", "task_type")
