from ratebook.models.pricing import (
    DowRule,
    EventOverride,
    OccupancyRule,
    RatePlan,
    RateRestriction,
    RoomType,
    SeasonalRate,
)
from ratebook.models.billing import Folio, FolioItem, Tax
from ratebook.models.currency import Currency, ExchangeRate
from ratebook.models.promotions import PromoCode, PromoCodeUsage
from ratebook.models.loyalty import (
    LoyaltyMember,
    LoyaltyReward,
    LoyaltyTier,
    LoyaltyTransaction,
)

__all__ = [
    "Currency",
    "DowRule",
    "EventOverride",
    "ExchangeRate",
    "Folio",
    "FolioItem",
    "LoyaltyMember",
    "LoyaltyReward",
    "LoyaltyTier",
    "LoyaltyTransaction",
    "OccupancyRule",
    "PromoCode",
    "PromoCodeUsage",
    "RatePlan",
    "RateRestriction",
    "RoomType",
    "SeasonalRate",
    "Tax",
]
