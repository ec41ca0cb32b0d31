"""Promo code eligibility and discount arithmetic, plus loyalty tier discounts."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ratebook.enums import DiscountType
from ratebook.errors import PromoError, PromoFailReason
from ratebook.services.pricing.composer import HUNDRED, ZERO, quantize


def _opt_dec(value) -> Decimal | None:
    return None if value is None else Decimal(str(value))


@dataclass(frozen=True)
class PromoRule:
    id: int
    code: str
    discount_type: str
    discount_value: Decimal
    max_discount: Decimal | None = None
    min_amount: Decimal | None = None
    min_nights: int | None = None
    max_uses: int | None = None
    used_count: int = 0
    per_guest_limit: int | None = None
    valid_from: date | None = None
    valid_to: date | None = None
    applicable_room_types: tuple[int, ...] = ()
    is_active: bool = True

    @classmethod
    def from_model(cls, row) -> "PromoRule":
        return cls(
            id=row.id,
            code=row.code,
            discount_type=row.discount_type,
            discount_value=Decimal(str(row.discount_value)),
            max_discount=_opt_dec(row.max_discount),
            min_amount=_opt_dec(row.min_amount),
            min_nights=row.min_nights,
            max_uses=row.max_uses,
            used_count=row.used_count or 0,
            per_guest_limit=row.per_guest_limit,
            valid_from=row.valid_from,
            valid_to=row.valid_to,
            applicable_room_types=tuple(int(r) for r in (row.applicable_room_types or [])),
            is_active=bool(row.is_active),
        )


@dataclass(frozen=True)
class PromoContext:
    today: date
    nights: int | None = None
    guest_id: int | None = None
    guest_usage_count: int = 0
    amount: Decimal | None = None
    room_type_id: int | None = None


@dataclass
class PromoApplication:
    code: str
    original: Decimal
    discount: Decimal
    final: Decimal


def check_promo(promo: PromoRule, context: PromoContext) -> PromoFailReason | None:
    """First failing check, or None when the promo may be applied."""
    if promo.valid_to is not None and promo.valid_to < context.today:
        return PromoFailReason.EXPIRED
    if promo.valid_from is not None and promo.valid_from > context.today:
        return PromoFailReason.NOT_YET_VALID
    if promo.max_uses is not None and promo.used_count >= promo.max_uses:
        return PromoFailReason.USAGE_LIMIT
    if (
        promo.per_guest_limit is not None
        and context.guest_id is not None
        and context.guest_usage_count >= promo.per_guest_limit
    ):
        return PromoFailReason.GUEST_LIMIT
    if promo.min_nights is not None and context.nights is not None and context.nights < promo.min_nights:
        return PromoFailReason.MIN_NIGHTS_NOT_MET
    if not promo.is_active:
        return PromoFailReason.INACTIVE
    if promo.min_amount is not None and context.amount is not None and context.amount < promo.min_amount:
        return PromoFailReason.MIN_AMOUNT_NOT_MET
    if (
        promo.applicable_room_types
        and context.room_type_id is not None
        and context.room_type_id not in promo.applicable_room_types
    ):
        return PromoFailReason.ROOM_TYPE_NOT_ELIGIBLE
    return None


def promo_discount(amount: Decimal, promo: PromoRule, decimal_places: int = 2) -> Decimal:
    """Discount ``promo`` grants on ``amount``; never more than ``amount``."""
    if amount <= ZERO:
        return ZERO
    discount_type = DiscountType(promo.discount_type)
    if discount_type is DiscountType.PERCENTAGE:
        discount = amount * promo.discount_value / HUNDRED
        if promo.max_discount is not None:
            discount = min(discount, promo.max_discount)
    elif discount_type is DiscountType.FIXED:
        discount = promo.discount_value
    else:
        raise ValueError(f"Unhandled discount type: {discount_type!r}")
    discount = max(min(discount, amount), ZERO)
    return quantize(discount, decimal_places)


def apply_promo(
    amount: Decimal,
    promo: PromoRule,
    context: PromoContext,
    decimal_places: int = 2,
) -> PromoApplication:
    reason = check_promo(promo, context)
    if reason is not None:
        raise PromoError(reason, promo_code=promo.code)
    discount = promo_discount(amount, promo, decimal_places)
    return PromoApplication(code=promo.code, original=amount, discount=discount, final=amount - discount)


def tier_discount(amount: Decimal, discount_percent: Decimal | None, decimal_places: int = 2) -> Decimal:
    """Member discount for a loyalty tier's ``discount_percent``."""
    if not discount_percent or amount <= ZERO:
        return ZERO
    discount = amount * Decimal(str(discount_percent)) / HUNDRED
    return quantize(min(discount, amount), decimal_places)
