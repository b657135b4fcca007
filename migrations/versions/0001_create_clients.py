"""create clients and appliances tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_clients"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("address", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_clients_name", "clients", ["name"], unique=False)

    op.create_table(
        "appliances",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "client_id",
            sa.Integer(),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("maker", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("serial_number", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("age_years", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_appliances_client_id", "appliances", ["client_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_appliances_client_id", table_name="appliances")
    op.drop_table("appliances")
    op.drop_index("ix_clients_name", table_name="clients")
    op.drop_table("clients")
