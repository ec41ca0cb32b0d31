from decimal import Decimal

import pytest

from ratebook.errors import ValidationError
from ratebook.services.pricing.taxes import TaxRule, apply_taxes


def tax(id, rate, type="percentage", applies_to="all", sort_order=0, is_active=True):
    return TaxRule(
        id=id,
        name=f"Tax {id}",
        rate=Decimal(rate),
        type=type,
        applies_to=applies_to,
        is_active=is_active,
        sort_order=sort_order,
    )


def test_single_percentage_tax():
    result = apply_taxes(Decimal("125.00"), [tax(1, "15")])
    assert result.tax_total == Decimal("18.75")
    assert result.grand_total == Decimal("143.75")
    assert [line.amount for line in result.breakdown] == [Decimal("18.75")]


def test_taxes_do_not_compound():
    result = apply_taxes(Decimal("100.00"), [tax(1, "10"), tax(2, "5", sort_order=1)])
    assert [line.amount for line in result.breakdown] == [Decimal("10.00"), Decimal("5.00")]
    assert result.tax_total == Decimal("15.00")


def test_breakdown_follows_sort_order_then_id():
    result = apply_taxes(Decimal("100"), [tax(3, "1", sort_order=1), tax(2, "1", sort_order=0), tax(1, "1", sort_order=1)])
    assert [line.tax_id for line in result.breakdown] == [2, 1, 3]


def test_scope_filters_taxes_for_the_line_category():
    taxes = [tax(1, "15"), tax(2, "2.5", applies_to="room_charge"), tax(3, "5", applies_to="service")]
    room = apply_taxes(Decimal("100"), taxes, "room_charge")
    extra = apply_taxes(Decimal("100"), taxes, "extra")
    assert [line.tax_id for line in room.breakdown] == [1, 2]
    assert [line.tax_id for line in extra.breakdown] == [1]


def test_inactive_taxes_are_skipped():
    result = apply_taxes(Decimal("100"), [tax(1, "15", is_active=False)])
    assert result.breakdown == []
    assert result.grand_total == Decimal("100")


def test_fixed_tax_is_flat_per_line():
    result = apply_taxes(Decimal("80"), [tax(1, "3.50", type="fixed")])
    assert result.tax_total == Decimal("3.50")


def test_each_line_rounded_half_up_before_summing():
    # 0.125 and 0.125 round to 0.13 each
    result = apply_taxes(Decimal("2.50"), [tax(1, "5"), tax(2, "5", sort_order=1)])
    assert result.tax_total == Decimal("0.26")


def test_negative_subtotal_rejected():
    with pytest.raises(ValidationError):
        apply_taxes(Decimal("-1"), [tax(1, "15")])


def test_tax_total_never_negative_and_grand_total_covers_subtotal():
    taxes = [tax(1, "15"), tax(2, "0"), tax(3, "1.25", type="fixed")]
    for subtotal in (Decimal("0"), Decimal("0.01"), Decimal("57.33"), Decimal("1000")):
        result = apply_taxes(subtotal, taxes)
        assert result.tax_total >= 0
        assert result.grand_total >= subtotal
