"""Tax engine.

Taxes never compound: every participating tax is computed against the same
pre-tax subtotal, in ``sort_order`` then id order. Each line is rounded on its
own and the total is the sum of the rounded lines.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from ratebook.enums import TaxScope, TaxType
from ratebook.errors import ValidationError
from ratebook.services.pricing.composer import HUNDRED, ZERO, quantize


@dataclass(frozen=True)
class TaxRule:
    id: int
    name: str
    rate: Decimal
    type: str = TaxType.PERCENTAGE.value
    applies_to: str = TaxScope.ALL.value
    is_active: bool = True
    sort_order: int = 0

    @classmethod
    def from_model(cls, row) -> "TaxRule":
        return cls(
            id=row.id,
            name=row.name,
            rate=Decimal(str(row.rate)),
            type=row.type,
            applies_to=row.applies_to,
            is_active=bool(row.is_active),
            sort_order=row.sort_order or 0,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "TaxRule":
        return cls(
            id=data["id"],
            name=data["name"],
            rate=Decimal(str(data["rate"])),
            type=data["type"],
            applies_to=data["applies_to"],
            is_active=data.get("is_active", True),
            sort_order=data.get("sort_order", 0),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rate": str(self.rate),
            "type": self.type,
            "applies_to": self.applies_to,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
        }


@dataclass
class TaxLine:
    tax_id: int
    name: str
    type: TaxType
    rate: Decimal
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "tax_id": self.tax_id,
            "name": self.name,
            "type": self.type.value,
            "rate": str(self.rate),
            "amount": str(self.amount),
        }


@dataclass
class TaxResult:
    subtotal: Decimal
    tax_total: Decimal
    grand_total: Decimal
    breakdown: list[TaxLine] = field(default_factory=list)


def _applies(tax: TaxRule, line_category: TaxScope) -> bool:
    scope = TaxScope(tax.applies_to)
    return tax.is_active and scope in (TaxScope.ALL, line_category)


def _line_amount(subtotal: Decimal, tax: TaxRule, tax_type: TaxType) -> Decimal:
    if tax_type is TaxType.PERCENTAGE:
        return subtotal * tax.rate / HUNDRED
    if tax_type is TaxType.FIXED:
        return tax.rate
    raise ValueError(f"Unhandled tax type: {tax_type!r}")


def apply_taxes(
    subtotal: Decimal,
    taxes: list[TaxRule],
    line_category: TaxScope | str = TaxScope.ROOM_CHARGE,
    decimal_places: int = 2,
) -> TaxResult:
    if subtotal < ZERO:
        raise ValidationError(f"Cannot tax a negative subtotal ({subtotal})", subtotal=str(subtotal))
    line_category = TaxScope(line_category)

    breakdown = []
    for tax in sorted(taxes, key=lambda t: (t.sort_order, t.id)):
        if not _applies(tax, line_category):
            continue
        tax_type = TaxType(tax.type)
        amount = quantize(_line_amount(subtotal, tax, tax_type), decimal_places)
        breakdown.append(TaxLine(tax_id=tax.id, name=tax.name, type=tax_type, rate=tax.rate, amount=amount))

    tax_total = sum((line.amount for line in breakdown), ZERO)
    return TaxResult(
        subtotal=subtotal,
        tax_total=tax_total,
        grand_total=subtotal + tax_total,
        breakdown=breakdown,
    )
