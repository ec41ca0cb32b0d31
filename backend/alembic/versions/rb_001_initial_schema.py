"""Initial schema: room types, rate rules, taxes, folios, currencies, promos, loyalty

Revision ID: rb_001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision = "rb_001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now())]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()))
    return cols


def upgrade() -> None:
    # --- room_types ---
    op.create_table(
        "room_types",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), server_default="active"),
        *_timestamps(),
    )

    # --- rate_plans ---
    op.create_table(
        "rate_plans",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("room_type_id", sa.Integer, sa.ForeignKey("room_types.id")),
        sa.Column("modifier_type", sa.String(20), server_default="fixed"),
        sa.Column("modifier_value", sa.Numeric(12, 4), server_default="0"),
        sa.Column("min_stay", sa.Integer, server_default="1"),
        sa.Column("max_stay", sa.Integer, server_default="0"),
        sa.Column("priority", sa.Integer, server_default="0"),
        sa.Column("is_default", sa.Boolean, server_default=sa.text("false")),
        sa.Column("valid_from", sa.Date),
        sa.Column("valid_to", sa.Date),
        sa.Column("status", sa.String(20), server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_rate_plans_room_type_id", "rate_plans", ["room_type_id"])

    # --- seasonal_rates ---
    op.create_table(
        "seasonal_rates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("room_type_id", sa.Integer),
        sa.Column("rate_plan_id", sa.Integer),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("days_of_week", JSONB, server_default="[]"),
        sa.Column("modifier_type", sa.String(20), server_default="percentage"),
        sa.Column("modifier_value", sa.Numeric(12, 4), nullable=False),
        sa.Column("priority", sa.Integer, server_default="0"),
        sa.Column("min_stay", sa.Integer, server_default="1"),
        sa.Column("status", sa.String(20), server_default="active"),
        *_timestamps(updated=False),
    )
    op.create_index("ix_seasonal_rates_room_type_id", "seasonal_rates", ["room_type_id"])
    op.create_index("idx_seasonal_rates_dates", "seasonal_rates", ["start_date", "end_date"])

    # --- dow_rules / occupancy_rules / event_overrides ---
    op.create_table(
        "dow_rules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("room_type_id", sa.Integer),
        sa.Column("day_of_week", sa.Integer, nullable=False),
        sa.Column("modifier_type", sa.String(20), server_default="percentage"),
        sa.Column("modifier_value", sa.Numeric(12, 4), server_default="0"),
        sa.Column("status", sa.String(20), server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_dow_rules_room_type_id", "dow_rules", ["room_type_id"])

    op.create_table(
        "occupancy_rules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("room_type_id", sa.Integer),
        sa.Column("threshold_percent", sa.Integer, server_default="70"),
        sa.Column("modifier_type", sa.String(20), server_default="percentage"),
        sa.Column("modifier_value", sa.Numeric(12, 4), server_default="0"),
        sa.Column("priority", sa.Integer, server_default="0"),
        sa.Column("status", sa.String(20), server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_occupancy_rules_room_type_id", "occupancy_rules", ["room_type_id"])

    op.create_table(
        "event_overrides",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("room_type_id", sa.Integer),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("modifier_type", sa.String(20), server_default="percentage"),
        sa.Column("modifier_value", sa.Numeric(12, 4), server_default="0"),
        sa.Column("priority", sa.Integer, server_default="0"),
        sa.Column("status", sa.String(20), server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_event_overrides_room_type_id", "event_overrides", ["room_type_id"])

    # --- taxes ---
    op.create_table(
        "taxes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("rate", sa.Numeric(12, 4), nullable=False, server_default="0"),
        sa.Column("type", sa.String(20), server_default="percentage"),
        sa.Column("applies_to", sa.String(30), server_default="all"),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer, server_default="0"),
        *_timestamps(),
    )

    # --- folios ---
    op.create_table(
        "folios",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("folio_number", sa.String(30), nullable=False, unique=True),
        sa.Column("booking_id", sa.Integer),
        sa.Column("guest_id", sa.Integer, nullable=False),
        sa.Column("currency", sa.String(3), server_default="USD"),
        sa.Column("status", sa.String(20), server_default="open"),
        sa.Column("subtotal", sa.Numeric(12, 2), server_default="0"),
        sa.Column("tax_total", sa.Numeric(12, 2), server_default="0"),
        sa.Column("discount_total", sa.Numeric(12, 2), server_default="0"),
        sa.Column("grand_total", sa.Numeric(12, 2), server_default="0"),
        sa.Column("paid_amount", sa.Numeric(12, 2), server_default="0"),
        sa.Column("notes", sa.Text),
        sa.Column("closed_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_folios_booking_id", "folios", ["booking_id"])
    op.create_index("ix_folios_guest_id", "folios", ["guest_id"])

    op.create_table(
        "folio_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("folio_id", sa.Integer, sa.ForeignKey("folios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category", sa.String(30), server_default="room_charge"),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("quantity", sa.Integer, server_default="1"),
        sa.Column("unit_price", sa.Numeric(12, 2), server_default="0"),
        sa.Column("subtotal", sa.Numeric(12, 2), server_default="0"),
        sa.Column("tax_breakdown", JSONB, server_default="[]"),
        sa.Column("tax_total", sa.Numeric(12, 2), server_default="0"),
        sa.Column("total", sa.Numeric(12, 2), server_default="0"),
        sa.Column("service_date", sa.Date),
        *_timestamps(updated=False),
    )
    op.create_index("ix_folio_items_folio_id", "folio_items", ["folio_id"])

    # --- currencies ---
    op.create_table(
        "currencies",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(3), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("symbol", sa.String(10), nullable=False),
        sa.Column("decimal_places", sa.Integer, server_default="2"),
        sa.Column("exchange_rate", sa.Numeric(18, 6), server_default="1"),
        sa.Column("is_default", sa.Boolean, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "exchange_rates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("from_currency", sa.String(3), nullable=False),
        sa.Column("to_currency", sa.String(3), nullable=False),
        sa.Column("rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("source", sa.String(50), server_default="manual"),
        sa.Column("effective_date", sa.Date, nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index(
        "idx_exchange_pair_date", "exchange_rates", ["from_currency", "to_currency", "effective_date"]
    )

    # --- promo_codes ---
    op.create_table(
        "promo_codes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("discount_type", sa.String(20), server_default="percentage"),
        sa.Column("discount_value", sa.Numeric(12, 2), server_default="0"),
        sa.Column("max_discount", sa.Numeric(12, 2)),
        sa.Column("min_amount", sa.Numeric(12, 2)),
        sa.Column("min_nights", sa.Integer),
        sa.Column("max_uses", sa.Integer),
        sa.Column("used_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("per_guest_limit", sa.Integer),
        sa.Column("valid_from", sa.Date),
        sa.Column("valid_to", sa.Date),
        sa.Column("applicable_room_types", JSONB, server_default="[]"),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "promo_code_usages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "promo_code_id", sa.Integer, sa.ForeignKey("promo_codes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("guest_id", sa.Integer),
        sa.Column("booking_id", sa.Integer),
        sa.Column("discount_amount", sa.Numeric(12, 2), server_default="0"),
        sa.Column("used_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_promo_code_usages_promo_code_id", "promo_code_usages", ["promo_code_id"])
    op.create_index("ix_promo_code_usages_guest_id", "promo_code_usages", ["guest_id"])

    # --- loyalty ---
    op.create_table(
        "loyalty_tiers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("min_points", sa.Integer, server_default="0"),
        sa.Column("discount_percent", sa.Numeric(5, 2), server_default="0"),
        sa.Column("sort_order", sa.Integer, server_default="0"),
        *_timestamps(updated=False),
    )
    op.create_index("ix_loyalty_tiers_min_points", "loyalty_tiers", ["min_points"])

    op.create_table(
        "loyalty_members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("guest_id", sa.Integer, nullable=False, unique=True),
        sa.Column("tier_id", sa.Integer, sa.ForeignKey("loyalty_tiers.id")),
        sa.Column("points_balance", sa.Integer, nullable=False, server_default="0"),
        sa.Column("lifetime_points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("points_balance >= 0", name="ck_loyalty_members_balance_non_negative"),
    )

    op.create_table(
        "loyalty_rewards",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("points_cost", sa.Integer, nullable=False),
        sa.Column("reward_type", sa.String(30), server_default="discount"),
        sa.Column("reward_value", sa.Numeric(12, 2), server_default="0"),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        *_timestamps(updated=False),
    )

    op.create_table(
        "loyalty_transactions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("member_id", sa.Integer, sa.ForeignKey("loyalty_members.id"), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("balance_after", sa.Integer, nullable=False),
        sa.Column("booking_id", sa.Integer),
        sa.Column("reward_id", sa.Integer, sa.ForeignKey("loyalty_rewards.id")),
        sa.Column("description", sa.String(255)),
        *_timestamps(updated=False),
    )
    op.create_index("ix_loyalty_transactions_member_id", "loyalty_transactions", ["member_id"])


def downgrade() -> None:
    op.drop_table("loyalty_transactions")
    op.drop_table("loyalty_rewards")
    op.drop_table("loyalty_members")
    op.drop_table("loyalty_tiers")
    op.drop_table("promo_code_usages")
    op.drop_table("promo_codes")
    op.drop_table("exchange_rates")
    op.drop_table("currencies")
    op.drop_table("folio_items")
    op.drop_table("folios")
    op.drop_table("taxes")
    op.drop_table("event_overrides")
    op.drop_table("occupancy_rules")
    op.drop_table("dow_rules")
    op.drop_table("seasonal_rates")
    op.drop_table("rate_plans")
    op.drop_table("room_types")
