"""Per-stay fees added to the room subtotal before tax."""

from decimal import Decimal

from ratebook.services.pricing.composer import HUNDRED, ZERO, quantize


def extra_person_charge(
    adults: int,
    children: int,
    nights: int,
    base_occupancy: int,
    adult_rate: Decimal,
    child_rate: Decimal,
    decimal_places: int = 2,
) -> Decimal:
    """Adults above ``base_occupancy`` pay ``adult_rate``; every child pays
    ``child_rate``. Both are per person per night."""
    if nights <= 0:
        return ZERO
    extra_adults = max(0, adults - base_occupancy)
    per_night = extra_adults * adult_rate + max(0, children) * child_rate
    return quantize(per_night * nights, decimal_places)


def service_fee(amount: Decimal, rate_percent: Decimal, decimal_places: int = 2) -> Decimal:
    if amount <= ZERO or not rate_percent:
        return ZERO
    return quantize(amount * rate_percent / HUNDRED, decimal_places)
