"""Closed vocabularies shared by models, schemas and the pricing core.

Columns store the ``.value`` strings; the core converts them back and raises
on anything it does not recognise.
"""

import enum


class ModifierType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    ABSOLUTE = "absolute"


class RuleCategory(str, enum.Enum):
    EVENT_OVERRIDE = "event_override"
    SEASONAL = "seasonal"
    DAY_OF_WEEK = "day_of_week"
    OCCUPANCY = "occupancy"
    RATE_PLAN = "rate_plan"

    @property
    def rank(self) -> int:
        """Specificity rank, lower applies first."""
        return _CATEGORY_RANK[self]


_CATEGORY_RANK = {
    RuleCategory.EVENT_OVERRIDE: 0,
    RuleCategory.SEASONAL: 1,
    RuleCategory.DAY_OF_WEEK: 2,
    RuleCategory.OCCUPANCY: 3,
    RuleCategory.RATE_PLAN: 4,
}


class RuleStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TaxType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class TaxScope(str, enum.Enum):
    ALL = "all"
    ROOM_CHARGE = "room_charge"
    EXTRA = "extra"
    SERVICE = "service"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class LoyaltyTransactionType(str, enum.Enum):
    EARN = "earn"
    REDEEM = "redeem"
    ADJUST = "adjust"


class RewardType(str, enum.Enum):
    DISCOUNT = "discount"
    FREE_NIGHT = "free_night"
    UPGRADE = "upgrade"
    AMENITY = "amenity"


class FolioStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    VOID = "void"


class FolioItemCategory(str, enum.Enum):
    ROOM_CHARGE = "room_charge"
    EXTRA = "extra"
    SERVICE = "service"
    TAX_ADJUSTMENT = "tax_adjustment"
    DISCOUNT = "discount"
    PAYMENT = "payment"

    @property
    def is_charge(self) -> bool:
        return self in (FolioItemCategory.ROOM_CHARGE, FolioItemCategory.EXTRA, FolioItemCategory.SERVICE)


class ParityStatus(str, enum.Enum):
    PARITY = "parity"
    UNDERCUT = "undercut"
    OVERPRICED = "overpriced"


class RestrictionType(str, enum.Enum):
    MIN_STAY = "min_stay"
    MAX_STAY = "max_stay"
    CLOSED_TO_ARRIVAL = "cta"
    CLOSED_TO_DEPARTURE = "ctd"
    STOP_SELL = "stop_sell"

    @property
    def needs_value(self) -> bool:
        return self in (RestrictionType.MIN_STAY, RestrictionType.MAX_STAY)
