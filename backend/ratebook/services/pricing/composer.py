"""Price composer: fold an ordered modifier list over a base rate."""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from ratebook.enums import ModifierType
from ratebook.services.pricing.modifiers import Modifier

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def quantize(amount: Decimal, decimal_places: int = 2) -> Decimal:
    """Round half-up to ``decimal_places``."""
    return amount.quantize(Decimal(1).scaleb(-decimal_places), rounding=ROUND_HALF_UP)


@dataclass
class Composition:
    subtotal: Decimal
    unrounded: Decimal
    applied: list[Modifier] = field(default_factory=list)
    clamped: bool = False
    short_circuited_by: Modifier | None = None


def apply_modifier(amount: Decimal, modifier: Modifier) -> Decimal:
    if modifier.modifier_type is ModifierType.PERCENTAGE:
        return amount * (1 + modifier.value / HUNDRED)
    if modifier.modifier_type is ModifierType.FIXED:
        return amount + modifier.value
    if modifier.modifier_type is ModifierType.ABSOLUTE:
        return modifier.value
    raise ValueError(f"Unhandled modifier type: {modifier.modifier_type!r}")


def compose_detailed(
    base_rate: Decimal,
    modifiers: list[Modifier],
    decimal_places: int = 2,
) -> Composition:
    if not modifiers:
        return Composition(subtotal=base_rate, unrounded=base_rate)

    amount = base_rate
    applied: list[Modifier] = []
    stopped_by = None
    for modifier in modifiers:
        amount = apply_modifier(amount, modifier)
        applied.append(modifier)
        if modifier.modifier_type is ModifierType.ABSOLUTE:
            stopped_by = modifier
            break

    clamped = False
    if amount < ZERO:
        logger.warning(
            f"Composed rate {amount} from base {base_rate} is negative, clamping to 0 "
            f"(modifiers: {[m.rule_id for m in applied]})"
        )
        amount = ZERO
        clamped = True

    return Composition(
        subtotal=quantize(amount, decimal_places),
        unrounded=amount,
        applied=applied,
        clamped=clamped,
        short_circuited_by=stopped_by,
    )


def compose(base_rate: Decimal, modifiers: list[Modifier], decimal_places: int = 2) -> Decimal:
    """Nightly subtotal for ``base_rate`` after ``modifiers``, rounded once at the end."""
    return compose_detailed(base_rate, modifiers, decimal_places).subtotal
