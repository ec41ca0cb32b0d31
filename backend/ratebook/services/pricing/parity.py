"""Rate parity check against a competitor or channel rate."""

from dataclasses import dataclass
from decimal import Decimal

from ratebook.enums import ParityStatus
from ratebook.errors import ValidationError
from ratebook.services.pricing.composer import HUNDRED, ZERO, quantize


@dataclass
class ParityResult:
    our_rate: Decimal
    their_rate: Decimal
    difference: Decimal
    pct_difference: Decimal
    status: ParityStatus

    @property
    def is_violation(self) -> bool:
        return self.status is not ParityStatus.PARITY


def compare_rates(our_rate: Decimal, their_rate: Decimal, threshold_percent: Decimal | float) -> ParityResult:
    if our_rate <= ZERO:
        raise ValidationError("Our rate must be positive to compare parity", our_rate=str(our_rate))
    difference = their_rate - our_rate
    pct = quantize(difference / our_rate * HUNDRED, 2)
    threshold = Decimal(str(threshold_percent))

    if abs(pct) <= threshold:
        status = ParityStatus.PARITY
    elif difference < ZERO:
        status = ParityStatus.UNDERCUT
    else:
        status = ParityStatus.OVERPRICED
    return ParityResult(
        our_rate=our_rate,
        their_rate=their_rate,
        difference=difference,
        pct_difference=pct,
        status=status,
    )
