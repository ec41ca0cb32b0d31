from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import update

from ratebook.config import settings
from ratebook.errors import NotFoundError, PricingError, PromoError
from ratebook.models.loyalty import LoyaltyMember
from ratebook.models.pricing import DowRule, OccupancyRule, RatePlan, RateRestriction, SeasonalRate
from ratebook.models.promotions import PromoCode
from ratebook.services.pricing_service import pricing_service

CHECK_IN = date(2026, 7, 4)  # Saturday


@pytest.fixture
async def summer(db):
    rule = SeasonalRate(
        name="High summer",
        start_date=date(2026, 7, 1),
        end_date=date(2026, 7, 31),
        modifier_type="percentage",
        modifier_value=Decimal("25"),
        priority=1,
        status="active",
    )
    db.add(rule)
    await db.commit()
    return rule


async def test_seasonal_uplift_with_tax(db, room, summer, vat):
    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5))

    assert quote.nights == 1
    assert quote.nightly_rates[0].rate == Decimal("125.00")
    assert quote.room_subtotal == Decimal("125.00")
    assert quote.tax_total == Decimal("18.75")
    assert quote.grand_total == Decimal("143.75")
    assert quote.currency == "USD"
    assert [m["category"] for m in quote.nightly_rates[0].modifiers] == ["seasonal", "rate_plan"]


async def test_each_night_priced_on_its_own(db, room, vat):
    # Saturdays +20%
    db.add(DowRule(day_of_week=6, modifier_type="percentage", modifier_value=Decimal("20"), status="active"))
    await db.commit()

    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 6))

    assert [n.rate for n in quote.nightly_rates] == [Decimal("120.00"), Decimal("100.00")]
    assert quote.room_subtotal == Decimal("220.00")
    assert quote.grand_total == Decimal("253.00")


async def test_occupancy_is_passed_through(db, room):
    db.add(OccupancyRule(threshold_percent=80, modifier_type="fixed", modifier_value=Decimal("30"), status="active"))
    await db.commit()

    low = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), occupancy_percent=50)
    high = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), occupancy_percent=85)

    assert low.room_subtotal == Decimal("100.00")
    assert high.room_subtotal == Decimal("130.00")


async def test_promo_discount_applied_before_tax(db, room, summer, vat):
    db.add(
        PromoCode(
            code="SUMMER2026",
            name="Summer",
            discount_type="percentage",
            discount_value=Decimal("20"),
            max_discount=Decimal("10.00"),
            is_active=True,
        )
    )
    await db.commit()

    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), promo_code="summer2026")

    assert quote.discount == Decimal("10.00")
    assert quote.promo_code == "SUMMER2026"
    assert quote.taxable_amount == Decimal("115.00")
    assert quote.grand_total == Decimal("132.25")


async def test_invalid_promo_fails_the_quote(db, room):
    with pytest.raises(PromoError):
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), promo_code="NOPE")


async def test_quote_in_another_currency(db, room, vat, currencies):
    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), currency="sar")
    assert quote.grand_total == Decimal("115.00")
    assert quote.currency == "SAR"
    assert quote.converted_total == Decimal("431.25")
    assert quote.currency_fallback is False


async def test_unknown_currency_falls_back_to_base(db, room, currencies):
    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), currency="XYZ")
    assert quote.currency == "USD"
    assert quote.converted_total == quote.grand_total
    assert quote.currency_fallback is True


async def test_rule_for_deleted_room_type_is_skipped(db, room):
    db.add(
        SeasonalRate(
            name="Orphan",
            room_type_id=999,
            start_date=date(2026, 7, 1),
            end_date=date(2026, 7, 31),
            modifier_type="percentage",
            modifier_value=Decimal("50"),
            status="active",
        )
    )
    await db.commit()

    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 7))

    assert quote.room_subtotal == Decimal("300.00")
    assert len(quote.skipped_rules) == 1
    assert quote.skipped_rules[0]["error"] == "resolution_error"


async def test_stay_must_have_nights(db, room):
    with pytest.raises(PricingError):
        await pricing_service.quote_stay(db, room.id, CHECK_IN, CHECK_IN)


async def test_rate_plan_stay_limits(db, room):
    plan = RatePlan(code="LONG", name="Long stay", modifier_type="percentage", modifier_value=Decimal("-10"), min_stay=3)
    db.add(plan)
    await db.commit()

    with pytest.raises(PricingError):
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), rate_plan_id=plan.id)

    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 7), rate_plan_id=plan.id)
    assert quote.room_subtotal == Decimal("270.00")


async def test_missing_room_type(db):
    with pytest.raises(NotFoundError):
        await pricing_service.quote_stay(db, 404, CHECK_IN, date(2026, 7, 5))


async def test_no_default_rate_plan(db, room):
    await db.execute(update(RatePlan).values(is_default=False))
    await db.commit()
    with pytest.raises(PricingError):
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5))


async def test_preview_single_night(db, room, summer):
    _, resolution, composition = await pricing_service.preview(db, room.id, CHECK_IN)
    assert [m.category.value for m in resolution.modifiers] == ["seasonal", "rate_plan"]
    assert composition.subtotal == Decimal("125.00")


def test_parity_uses_configured_threshold():
    assert pricing_service.check_parity(Decimal("100"), Decimal("104")).status.value == "parity"
    assert pricing_service.check_parity(Decimal("100"), Decimal("104"), threshold_percent=2).status.value == "overpriced"


# Occupants


async def test_extra_person_fee_is_taxed(db, room, vat, monkeypatch):
    monkeypatch.setattr(settings, "extra_child_charge", 10.0)
    room.extra_adult_price = Decimal("25.00")
    await db.commit()

    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 6), adults=3, children=1)

    # (1 extra adult * 25 + 1 child * 10) * 2 nights
    assert quote.extra_person_fee == Decimal("70.00")
    assert quote.taxable_amount == Decimal("270.00")
    assert quote.tax_total == Decimal("40.50")
    assert quote.grand_total == Decimal("310.50")


async def test_guests_within_base_occupancy_pay_nothing_extra(db, room, monkeypatch):
    monkeypatch.setattr(settings, "extra_adult_charge", 30.0)
    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), adults=2)
    assert quote.extra_person_fee == Decimal("0")
    assert quote.grand_total == Decimal("100.00")

    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), adults=3)
    assert quote.extra_person_fee == Decimal("30.00")


async def test_party_larger_than_room_is_rejected(db, room):
    with pytest.raises(PricingError):
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), adults=3, children=2)


# Restrictions


def _restriction(room, restriction_type, date_from, date_to, **kw):
    return RateRestriction(
        room_type_id=room.id,
        restriction_type=restriction_type,
        date_from=date_from,
        date_to=date_to,
        status="active",
        **kw,
    )


async def test_stop_sell_blocks_any_night(db, room):
    db.add(_restriction(room, "stop_sell", date(2026, 7, 5), date(2026, 7, 5)))
    await db.commit()

    with pytest.raises(PricingError) as exc_info:
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 6))
    assert exc_info.value.extra["reason"] == "stop_sell"
    assert exc_info.value.extra["date"] == "2026-07-05"

    # Leaving on the closed date is fine
    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5))
    assert quote.nights == 1


async def test_closed_to_arrival_and_departure(db, room):
    db.add(_restriction(room, "cta", CHECK_IN, CHECK_IN))
    db.add(_restriction(room, "ctd", date(2026, 7, 8), date(2026, 7, 8)))
    await db.commit()

    with pytest.raises(PricingError) as exc_info:
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 6))
    assert exc_info.value.extra["reason"] == "cta"

    with pytest.raises(PricingError) as exc_info:
        await pricing_service.quote_stay(db, room.id, date(2026, 7, 5), date(2026, 7, 8))
    assert exc_info.value.extra["reason"] == "ctd"

    quote = await pricing_service.quote_stay(db, room.id, date(2026, 7, 5), date(2026, 7, 7))
    assert quote.nights == 2


async def test_min_and_max_stay_restrictions(db, room):
    db.add(_restriction(room, "min_stay", date(2026, 7, 1), date(2026, 7, 10), value=3))
    db.add(_restriction(room, "max_stay", date(2026, 7, 1), date(2026, 7, 31), value=5))
    await db.commit()

    with pytest.raises(PricingError) as exc_info:
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 6))
    assert exc_info.value.extra["reason"] == "min_stay"

    with pytest.raises(PricingError) as exc_info:
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 10))
    assert exc_info.value.extra["reason"] == "max_stay"

    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 7))
    assert quote.nights == 3


async def test_restriction_scoping(db, room):
    other_plan = RatePlan(code="NRF", name="Non refundable", modifier_type="percentage", modifier_value=Decimal("-10"))
    db.add(other_plan)
    await db.flush()
    # Sundays only, NRF only, one channel only
    db.add(_restriction(room, "cta", date(2026, 7, 1), date(2026, 7, 31), days_of_week=[7]))
    db.add(_restriction(room, "stop_sell", date(2026, 7, 1), date(2026, 7, 31), rate_plan_id=other_plan.id))
    db.add(_restriction(room, "stop_sell", date(2026, 7, 1), date(2026, 7, 31), channel="booking_com"))
    await db.commit()

    # Saturday arrival on the default plan with no channel passes all three
    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5))
    assert quote.nights == 1

    with pytest.raises(PricingError) as exc_info:
        await pricing_service.quote_stay(db, room.id, date(2026, 7, 5), date(2026, 7, 6))
    assert exc_info.value.extra["reason"] == "cta"

    with pytest.raises(PricingError):
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), rate_plan_id=other_plan.id)

    with pytest.raises(PricingError):
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), channel="booking_com")


async def test_inactive_restriction_is_ignored(db, room):
    row = _restriction(room, "stop_sell", date(2026, 7, 1), date(2026, 7, 31))
    row.status = "inactive"
    db.add(row)
    await db.commit()

    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5))
    assert quote.nights == 1


# Loyalty


async def test_member_tier_discount_before_tax(db, room, vat, tiers):
    gold = tiers[2]
    member = LoyaltyMember(guest_id=42, tier_id=gold.id, points_balance=6000, lifetime_points=6000)
    db.add(member)
    await db.commit()

    quote = await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), loyalty_member_id=member.id)

    assert quote.loyalty_tier == "Gold"
    assert quote.member_discount == Decimal("10.00")
    assert quote.taxable_amount == Decimal("90.00")
    assert quote.grand_total == Decimal("103.50")


async def test_unknown_member_fails_the_quote(db, room):
    with pytest.raises(NotFoundError):
        await pricing_service.quote_stay(db, room.id, CHECK_IN, date(2026, 7, 5), loyalty_member_id=404)
