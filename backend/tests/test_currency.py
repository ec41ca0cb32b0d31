from decimal import Decimal

import pytest

from ratebook.errors import UnknownCurrencyError
from ratebook.services.pricing.currency import CurrencyInfo, CurrencyTable, convert, format_amount

TABLE = CurrencyTable(
    [
        CurrencyInfo(code="USD", symbol="$", exchange_rate=Decimal("1"), is_default=True),
        CurrencyInfo(code="SAR", symbol="SAR ", exchange_rate=Decimal("3.75")),
        CurrencyInfo(code="JPY", symbol="¥", exchange_rate=Decimal("151.50"), decimal_places=0),
        CurrencyInfo(code="CHF", symbol="CHF ", exchange_rate=Decimal("0.9"), is_active=False),
    ]
)


def test_base_to_foreign():
    assert convert(Decimal("100"), "USD", "SAR", TABLE) == Decimal("375.00")


def test_cross_rate_goes_through_base():
    assert convert(Decimal("375"), "SAR", "JPY", TABLE) == Decimal("15150")


def test_target_precision():
    assert convert(Decimal("10.01"), "USD", "JPY", TABLE) == Decimal("1517")


def test_same_currency_only_rounds():
    assert convert(Decimal("12.345"), "usd", "USD", TABLE) == Decimal("12.35")


def test_unknown_and_inactive_currencies_raise():
    with pytest.raises(UnknownCurrencyError):
        convert(Decimal("1"), "USD", "XYZ", TABLE)
    with pytest.raises(UnknownCurrencyError) as exc_info:
        convert(Decimal("1"), "CHF", "USD", TABLE)
    assert exc_info.value.currency_code == "CHF"


def test_table_lookup():
    assert TABLE.default.code == "USD"
    assert TABLE.codes == ["JPY", "SAR", "USD"]
    assert "sar" in TABLE


def test_format_amount():
    assert format_amount(Decimal("1234.5"), TABLE.get("USD")) == "$1,234.50"
    assert format_amount(Decimal("1234.5"), TABLE.get("JPY")) == "¥1,235"


def test_round_trip_within_one_minor_unit():
    for amount in (Decimal("0.01"), Decimal("19.99"), Decimal("123.45"), Decimal("9999.99")):
        there = convert(amount, "USD", "SAR", TABLE)
        back = convert(there, "SAR", "USD", TABLE)
        assert abs(back - amount) <= Decimal("0.01")
