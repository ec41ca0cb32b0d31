"""Add room occupancy pricing columns and rate restrictions table

Revision ID: rb_002
Revises: rb_001
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision = "rb_002"
down_revision = "rb_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Expand room_types ---
    op.add_column("room_types", sa.Column("base_occupancy", sa.Integer, nullable=False, server_default="2"))
    op.add_column("room_types", sa.Column("max_occupancy", sa.Integer, nullable=False, server_default="4"))
    op.add_column("room_types", sa.Column("extra_adult_price", sa.Numeric(12, 2), nullable=True))
    op.add_column("room_types", sa.Column("extra_child_price", sa.Numeric(12, 2), nullable=True))

    # --- rate_restrictions ---
    op.create_table(
        "rate_restrictions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("room_type_id", sa.Integer, sa.ForeignKey("room_types.id"), nullable=False),
        sa.Column("rate_plan_id", sa.Integer, sa.ForeignKey("rate_plans.id"), nullable=True),
        sa.Column("restriction_type", sa.String(30), nullable=False),
        sa.Column("value", sa.Integer, nullable=True),
        sa.Column("channel", sa.String(50), nullable=True),
        sa.Column("date_from", sa.Date, nullable=False),
        sa.Column("date_to", sa.Date, nullable=False),
        sa.Column("days_of_week", JSONB, server_default="[]"),
        sa.Column("status", sa.String(20), server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_rate_restrictions_room_type_id", "rate_restrictions", ["room_type_id"])
    op.create_index("idx_rate_restrictions_dates", "rate_restrictions", ["date_from", "date_to"])
    op.create_index("idx_rate_restrictions_type_status", "rate_restrictions", ["restriction_type", "status"])


def downgrade() -> None:
    op.drop_index("idx_rate_restrictions_type_status", table_name="rate_restrictions")
    op.drop_index("idx_rate_restrictions_dates", table_name="rate_restrictions")
    op.drop_index("ix_rate_restrictions_room_type_id", table_name="rate_restrictions")
    op.drop_table("rate_restrictions")

    op.drop_column("room_types", "extra_child_price")
    op.drop_column("room_types", "extra_adult_price")
    op.drop_column("room_types", "max_occupancy")
    op.drop_column("room_types", "base_occupancy")
