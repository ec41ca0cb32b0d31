"""Loyalty ledger arithmetic.

A balance only moves through ``post_points``; every ledger row stores the
balance it left behind, so replaying the signed points from the opening
balance reproduces each ``balance_after``.
"""

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal

from ratebook.errors import InsufficientPointsError

MIN_POINTS_RATE = 0.01


@dataclass(frozen=True)
class Tier:
    id: int
    name: str
    min_points: int
    discount_percent: Decimal = Decimal("0")

    @classmethod
    def from_model(cls, row) -> "Tier":
        return cls(
            id=row.id,
            name=row.name,
            min_points=row.min_points or 0,
            discount_percent=Decimal(str(row.discount_percent or 0)),
        )


def post_points(balance: int, points: int) -> int:
    """Balance after posting signed ``points``; a debit may not overdraw."""
    new_balance = balance + points
    if new_balance < 0:
        raise InsufficientPointsError(required=-points, balance=balance)
    return new_balance


def replay_ledger(initial: int, points: Iterable[int]) -> Iterator[int]:
    """Running ``balance_after`` for each signed entry."""
    balance = initial
    for entry in points:
        balance = post_points(balance, entry)
        yield balance


def points_for_amount(amount: Decimal | float, rate: float) -> int:
    """Points earned for spending ``amount`` at ``rate`` points per unit."""
    effective = Decimal(str(max(rate, MIN_POINTS_RATE)))
    earned = Decimal(str(amount)) * effective
    return max(math.floor(earned), 0)


def tier_for_points(lifetime_points: int, tiers: Iterable[Tier]) -> Tier | None:
    """Highest tier whose threshold ``lifetime_points`` reaches."""
    eligible = [t for t in tiers if t.min_points <= lifetime_points]
    if not eligible:
        return None
    return max(eligible, key=lambda t: (t.min_points, -t.id))
