"""Currency conversion through the base currency.

Every active currency carries ``exchange_rate`` = units of that currency per
one unit of the base currency, so a conversion is
``amount / rate(from) * rate(to)``, rounded once at the target's precision.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from ratebook.errors import UnknownCurrencyError
from ratebook.services.pricing.composer import quantize


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    symbol: str
    exchange_rate: Decimal
    decimal_places: int = 2
    is_default: bool = False
    is_active: bool = True

    @classmethod
    def from_model(cls, row) -> "CurrencyInfo":
        return cls(
            code=row.code,
            symbol=row.symbol,
            exchange_rate=Decimal(str(row.exchange_rate)),
            decimal_places=row.decimal_places if row.decimal_places is not None else 2,
            is_default=bool(row.is_default),
            is_active=bool(row.is_active),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "CurrencyInfo":
        return cls(
            code=data["code"],
            symbol=data["symbol"],
            exchange_rate=Decimal(str(data["exchange_rate"])),
            decimal_places=data.get("decimal_places", 2),
            is_default=data.get("is_default", False),
            is_active=data.get("is_active", True),
        )

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "symbol": self.symbol,
            "exchange_rate": str(self.exchange_rate),
            "decimal_places": self.decimal_places,
            "is_default": self.is_default,
            "is_active": self.is_active,
        }


class CurrencyTable:
    """Immutable lookup of active currencies by code."""

    def __init__(self, currencies: Iterable[CurrencyInfo]):
        self._by_code = {c.code.upper(): c for c in currencies if c.is_active}

    @classmethod
    def from_currencies(cls, currencies: Iterable) -> "CurrencyTable":
        return cls(c if isinstance(c, CurrencyInfo) else CurrencyInfo.from_model(c) for c in currencies)

    def __contains__(self, code: str) -> bool:
        return code.upper() in self._by_code

    def get(self, code: str) -> CurrencyInfo:
        currency = self._by_code.get((code or "").upper())
        if currency is None:
            raise UnknownCurrencyError(code)
        return currency

    @property
    def default(self) -> CurrencyInfo | None:
        return next((c for c in self._by_code.values() if c.is_default), None)

    @property
    def codes(self) -> list[str]:
        return sorted(self._by_code)


def convert(amount: Decimal, from_code: str, to_code: str, table: CurrencyTable) -> Decimal:
    source = table.get(from_code)
    target = table.get(to_code)
    if source.code == target.code:
        return quantize(amount, target.decimal_places)
    converted = amount / source.exchange_rate * target.exchange_rate
    return quantize(converted, target.decimal_places)


def convert_at_rate(amount: Decimal, rate: Decimal, target: CurrencyInfo) -> Decimal:
    """Convert with an explicit pair rate (units of target per unit of source)."""
    return quantize(amount * rate, target.decimal_places)


def format_amount(amount: Decimal, currency: CurrencyInfo) -> str:
    """Display string such as ``$1,234.50`` or ``¥1,235``."""
    rounded = quantize(amount, currency.decimal_places)
    return f"{currency.symbol}{rounded:,.{currency.decimal_places}f}"
