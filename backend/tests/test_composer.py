from decimal import Decimal

from ratebook.enums import ModifierType, RuleCategory
from ratebook.services.pricing.composer import compose, compose_detailed, quantize
from ratebook.services.pricing.modifiers import Modifier


def mod(modifier_type, value, category=RuleCategory.SEASONAL, rule_id=1):
    return Modifier(category=category, rule_id=rule_id, modifier_type=ModifierType(modifier_type), value=Decimal(value))


def test_no_modifiers_returns_base_rate_exactly():
    assert compose(Decimal("99.999"), []) == Decimal("99.999")


def test_percentage_then_fixed_applied_in_order():
    result = compose(Decimal("100"), [mod("percentage", "25"), mod("fixed", "-10", rule_id=2)])
    assert result == Decimal("115.00")


def test_order_matters():
    pct_first = compose(Decimal("100"), [mod("percentage", "10"), mod("fixed", "20", rule_id=2)])
    fixed_first = compose(Decimal("100"), [mod("fixed", "20", rule_id=2), mod("percentage", "10")])
    assert pct_first == Decimal("130.00")
    assert fixed_first == Decimal("132.00")


def test_absolute_replaces_and_stops_the_fold():
    composition = compose_detailed(
        Decimal("100"),
        [
            mod("absolute", "250", category=RuleCategory.EVENT_OVERRIDE, rule_id=9),
            mod("percentage", "50", rule_id=2),
        ],
    )
    assert composition.subtotal == Decimal("250.00")
    assert composition.short_circuited_by.rule_id == 9
    assert [m.rule_id for m in composition.applied] == [9]


def test_negative_result_is_clamped_to_zero():
    composition = compose_detailed(Decimal("50"), [mod("fixed", "-80")])
    assert composition.subtotal == Decimal("0.00")
    assert composition.clamped is True


def test_rounds_once_at_the_end_half_up():
    # 10.005 stays unrounded between steps; rounding each step would give 10.02
    modifiers = [mod("percentage", "0.05", rule_id=1), mod("percentage", "0.05", rule_id=2)]
    composition = compose_detailed(Decimal("10"), modifiers)
    assert composition.unrounded == Decimal("10.01000250")
    assert composition.subtotal == Decimal("10.01")


def test_quantize_half_up():
    assert quantize(Decimal("2.675")) == Decimal("2.68")
    assert quantize(Decimal("2.665")) == Decimal("2.67")
    assert quantize(Decimal("151.5"), 0) == Decimal("152")
