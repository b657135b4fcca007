"""add spare parts, service reports and parts used per report"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0004_add_inventory_reports"
down_revision = "0003_add_recurrence"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "spare_parts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("maker", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("detail", sa.Text(), nullable=False, server_default=""),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_spare_parts_quantity"),
    )
    op.create_index("ix_spare_parts_name", "spare_parts", ["name"], unique=False)

    op.create_table(
        "service_reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "task_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "appliance_id",
            sa.Integer(),
            sa.ForeignKey("appliances.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("technician", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_service_reports_task_id", "service_reports", ["task_id"], unique=False)
    op.create_index("ix_service_reports_appliance_id", "service_reports", ["appliance_id"], unique=False)

    op.create_table(
        "report_parts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "report_id",
            sa.Integer(),
            sa.ForeignKey("service_reports.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "spare_part_id",
            sa.Integer(),
            sa.ForeignKey("spare_parts.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
    )
    op.create_index("ix_report_parts_report_id", "report_parts", ["report_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_report_parts_report_id", table_name="report_parts")
    op.drop_table("report_parts")
    op.drop_index("ix_service_reports_appliance_id", table_name="service_reports")
    op.drop_index("ix_service_reports_task_id", table_name="service_reports")
    op.drop_table("service_reports")
    op.drop_index("ix_spare_parts_name", table_name="spare_parts")
    op.drop_table("spare_parts")
