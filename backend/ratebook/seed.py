"""Seed reference data for a fresh Ratebook database."""

import asyncio
import logging
from decimal import Decimal

from sqlalchemy import select

from ratebook.database import async_session_factory
from ratebook.models.billing import Tax
from ratebook.models.currency import Currency
from ratebook.models.loyalty import LoyaltyReward, LoyaltyTier
from ratebook.models.pricing import RatePlan, RoomType

logger = logging.getLogger(__name__)

# ── Currencies (rates per 1 USD) ───────────────────────────────────────────────

CURRENCIES = [
    {"code": "USD", "name": "US Dollar", "symbol": "$", "exchange_rate": Decimal("1"), "decimal_places": 2, "is_default": True, "sort_order": 0},
    {"code": "EUR", "name": "Euro", "symbol": "€", "exchange_rate": Decimal("0.92"), "decimal_places": 2, "sort_order": 1},
    {"code": "GBP", "name": "British Pound", "symbol": "£", "exchange_rate": Decimal("0.79"), "decimal_places": 2, "sort_order": 2},
    {"code": "SAR", "name": "Saudi Riyal", "symbol": "SAR ", "exchange_rate": Decimal("3.75"), "decimal_places": 2, "sort_order": 3},
    {"code": "JPY", "name": "Japanese Yen", "symbol": "¥", "exchange_rate": Decimal("151.50"), "decimal_places": 0, "sort_order": 4},
]

# ── Taxes ──────────────────────────────────────────────────────────────────────

TAXES = [
    {"name": "VAT", "rate": Decimal("15"), "type": "percentage", "applies_to": "all", "sort_order": 0},
    {"name": "Municipality fee", "rate": Decimal("2.5"), "type": "percentage", "applies_to": "room_charge", "sort_order": 1},
]

# ── Loyalty ────────────────────────────────────────────────────────────────────

TIERS = [
    {"name": "Bronze", "min_points": 0, "discount_percent": Decimal("0"), "sort_order": 0},
    {"name": "Silver", "min_points": 1000, "discount_percent": Decimal("5"), "sort_order": 1},
    {"name": "Gold", "min_points": 5000, "discount_percent": Decimal("10"), "sort_order": 2},
    {"name": "Platinum", "min_points": 15000, "discount_percent": Decimal("15"), "sort_order": 3},
]

REWARDS = [
    {"name": "Late checkout", "points_cost": 250, "reward_type": "amenity", "reward_value": Decimal("0")},
    {"name": "Room upgrade", "points_cost": 1500, "reward_type": "upgrade", "reward_value": Decimal("0")},
    {"name": "Free night", "points_cost": 5000, "reward_type": "free_night", "reward_value": Decimal("1")},
]

# ── Rooms and the property-wide default rate plan ──────────────────────────────

ROOM_TYPES = [
    {"name": "Standard Room", "base_price": Decimal("100.00")},
    {"name": "Deluxe Room", "base_price": Decimal("160.00")},
    {"name": "Suite", "base_price": Decimal("280.00")},
]

DEFAULT_RATE_PLAN = {
    "code": "BAR",
    "name": "Best Available Rate",
    "modifier_type": "fixed",
    "modifier_value": Decimal("0"),
    "is_default": True,
}


async def seed():
    async with async_session_factory() as db:
        result = await db.execute(select(Currency).limit(1))
        if result.scalar_one_or_none() is not None:
            logger.info("Database already seeded. Skipping.")
            return

        db.add_all(Currency(**c) for c in CURRENCIES)
        db.add_all(Tax(**t) for t in TAXES)
        db.add_all(LoyaltyTier(**t) for t in TIERS)
        db.add_all(LoyaltyReward(**r) for r in REWARDS)
        db.add_all(RoomType(**r) for r in ROOM_TYPES)
        db.add(RatePlan(**DEFAULT_RATE_PLAN))
        await db.commit()
        logger.info(
            f"Seed complete: {len(CURRENCIES)} currencies, {len(TAXES)} taxes, "
            f"{len(TIERS)} loyalty tiers, {len(ROOM_TYPES)} room types"
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
