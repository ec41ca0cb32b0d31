from datetime import date, timedelta
from decimal import Decimal

import pytest

from ratebook.errors import (
    FolioStateError,
    InsufficientFundsError,
    PromoError,
    PromoFailReason,
    ValidationError,
)
from ratebook.models.billing import Folio
from ratebook.services.currency_service import currency_service
from ratebook.services.folio_service import folio_service
from ratebook.services.promo_service import promo_service
from ratebook.services.tax_service import tax_service


# Folios


async def test_folio_totals_follow_items(db, vat):
    folio = await folio_service.create_folio(db, guest_id=1, booking_id=10)
    assert folio.status == "open"
    assert folio.folio_number.startswith(f"F-{date.today():%Y%m%d}-")

    item = await folio_service.add_item(db, folio.id, "room_charge", "Standard - 2 night(s)", 2, Decimal("100.00"))
    assert item.subtotal == Decimal("200.00")
    assert item.tax_total == Decimal("30.00")
    assert item.total == Decimal("230.00")
    assert item.tax_breakdown[0]["name"] == "VAT"

    await folio_service.add_item(db, folio.id, "discount", "Manager discount", 1, Decimal("20.00"))
    await folio_service.add_item(db, folio.id, "payment", "Card", 1, Decimal("100.00"))

    folio = await folio_service.get_folio(db, folio.id)
    assert folio.subtotal == Decimal("200.00")
    assert folio.tax_total == Decimal("30.00")
    assert folio.discount_total == Decimal("20.00")
    assert folio.grand_total == Decimal("210.00")
    assert folio.paid_amount == Decimal("100.00")
    assert folio.balance == Decimal("110.00")
    assert len(folio.items) == 3


async def test_payments_are_not_taxed(db, vat):
    folio = await folio_service.create_folio(db, guest_id=1)
    await folio_service.add_item(db, folio.id, "extra", "Minibar", 1, Decimal("40.00"))
    payment = await folio_service.add_item(db, folio.id, "payment", "Cash", 1, Decimal("46.00"))
    assert payment.tax_total == Decimal("0")
    folio = await folio_service.get_folio(db, folio.id)
    assert folio.balance == Decimal("0.00")


async def test_overpayment_rejected_unless_allowed(db, vat):
    folio = await folio_service.create_folio(db, guest_id=2)
    await folio_service.add_item(db, folio.id, "service", "Spa", 1, Decimal("100.00"))

    with pytest.raises(InsufficientFundsError):
        await folio_service.add_item(db, folio.id, "payment", "Card", 1, Decimal("200.00"))

    await folio_service.add_item(db, folio.id, "payment", "Card", 1, Decimal("200.00"), allow_overpayment=True)
    folio = await folio_service.get_folio(db, folio.id)
    assert folio.balance == Decimal("-85.00")


async def test_room_charges_description(db, vat):
    folio = await folio_service.create_folio(db, guest_id=3)
    item = await folio_service.post_room_charges(db, folio.id, 3, Decimal("125.00"), "Deluxe")
    assert item.description == "Deluxe - 3 night(s)"
    assert item.quantity == 3
    assert item.subtotal == Decimal("375.00")


async def test_remove_item_recalculates(db, vat):
    folio = await folio_service.create_folio(db, guest_id=4)
    item = await folio_service.add_item(db, folio.id, "extra", "Parking", 1, Decimal("10.00"))
    folio = await folio_service.remove_item(db, item.id)
    assert folio.items == []
    assert folio.grand_total == Decimal("0")


async def test_closed_folio_is_read_only(db, vat):
    folio = await folio_service.create_folio(db, guest_id=5)
    closed = await folio_service.close_folio(db, folio.id)
    assert closed.status == "closed"
    assert closed.closed_at is not None

    with pytest.raises(FolioStateError):
        await folio_service.add_item(db, folio.id, "extra", "Late", 1, Decimal("5"))
    with pytest.raises(FolioStateError):
        await folio_service.void_folio(db, folio.id)
    with pytest.raises(FolioStateError):
        await folio_service.close_folio(db, folio.id)


async def test_voided_folio_cannot_be_closed(db):
    folio = await folio_service.create_folio(db, guest_id=6, currency="sar")
    assert folio.currency == "SAR"
    voided = await folio_service.void_folio(db, folio.id)
    assert voided.status == "void"
    with pytest.raises(FolioStateError):
        await folio_service.close_folio(db, folio.id)


async def test_folio_numbers_increment(db):
    first = await folio_service.create_folio(db, guest_id=7)
    second = await folio_service.create_folio(db, guest_id=7)
    assert first.folio_number.endswith("-00001")
    assert second.folio_number.endswith("-00002")


async def test_folio_number_follows_row_id(db):
    # A number already taken out of sequence must not be handed out again
    prefix = f"F-{date.today():%Y%m%d}-"
    db.add(Folio(id=2, folio_number=f"{prefix}00002", guest_id=3, currency="USD", status="open"))
    await db.commit()

    folio = await folio_service.create_folio(db, guest_id=7)

    assert folio.id == 3
    assert folio.folio_number == f"{prefix}00003"


# Taxes


async def test_tax_service_calculates_from_active_taxes(db):
    await tax_service.create_tax(db, {"name": "VAT", "rate": Decimal("15"), "type": "percentage", "applies_to": "all"})
    levy = await tax_service.create_tax(
        db, {"name": "City levy", "rate": Decimal("5"), "type": "percentage", "applies_to": "room_charge"}
    )
    result = await tax_service.calculate(db, Decimal("100.00"), "room_charge")
    assert result.tax_total == Decimal("20.00")

    await tax_service.update_tax(db, levy.id, {"is_active": False})
    result = await tax_service.calculate(db, Decimal("100.00"), "room_charge")
    assert result.tax_total == Decimal("15.00")


# Promo codes


async def _promo(db, **kw):
    data = {
        "code": "SUMMER2026",
        "name": "Summer",
        "discount_type": "percentage",
        "discount_value": Decimal("20"),
        "max_discount": Decimal("10.00"),
    }
    data.update(kw)
    return await promo_service.create_promo(db, data)


async def test_validate_is_a_dry_run(db):
    promo = await _promo(db)
    application = await promo_service.validate(db, "summer2026", Decimal("100.00"))
    assert application.discount == Decimal("10.00")
    assert application.final == Decimal("90.00")
    promo = await promo_service.get_promo(db, promo.id)
    assert promo.used_count == 0


async def test_unknown_code(db):
    with pytest.raises(PromoError) as exc_info:
        await promo_service.validate(db, "NOPE", Decimal("100"))
    assert exc_info.value.reason is PromoFailReason.NOT_FOUND


async def test_duplicate_code_rejected(db):
    await _promo(db)
    with pytest.raises(ValidationError):
        await _promo(db)


async def test_redeem_counts_usage_and_enforces_max_uses(db):
    await _promo(db, max_uses=1)
    await promo_service.redeem(db, "SUMMER2026", Decimal("100.00"), guest_id=1, booking_id=501)

    with pytest.raises(PromoError) as exc_info:
        await promo_service.redeem(db, "SUMMER2026", Decimal("100.00"), guest_id=2)
    assert exc_info.value.reason is PromoFailReason.USAGE_LIMIT

    promo = await promo_service.find_by_code(db, "SUMMER2026")
    assert promo.used_count == 1


async def test_redeem_enforces_per_guest_limit(db):
    await _promo(db, per_guest_limit=1)
    await promo_service.redeem(db, "SUMMER2026", Decimal("100.00"), guest_id=9)
    with pytest.raises(PromoError) as exc_info:
        await promo_service.redeem(db, "SUMMER2026", Decimal("100.00"), guest_id=9)
    assert exc_info.value.reason is PromoFailReason.GUEST_LIMIT
    assert await promo_service.guest_usage_count(db, (await promo_service.find_by_code(db, "SUMMER2026")).id, 9) == 1


async def test_expired_code(db):
    await _promo(db, valid_to=date.today() - timedelta(days=1))
    with pytest.raises(PromoError) as exc_info:
        await promo_service.validate(db, "SUMMER2026", Decimal("100"))
    assert exc_info.value.reason is PromoFailReason.EXPIRED


# Currencies


async def test_first_currency_becomes_default(db):
    usd = await currency_service.create_currency(
        db, {"code": "USD", "name": "US Dollar", "symbol": "$", "exchange_rate": Decimal("1")}
    )
    eur = await currency_service.create_currency(
        db, {"code": "EUR", "name": "Euro", "symbol": "€", "exchange_rate": Decimal("0.92")}
    )
    assert usd.is_default is True
    assert eur.is_default is False
    assert await currency_service.base_code(db) == "USD"


async def test_set_default_moves_the_flag(db, currencies):
    sar = await currency_service.set_default(db, "SAR")
    assert sar.is_default is True
    usd = await currency_service.get_currency(db, "USD")
    await db.refresh(usd)
    assert usd.is_default is False


async def test_default_currency_is_protected(db, currencies):
    with pytest.raises(ValidationError):
        await currency_service.delete_currency(db, "USD")
    with pytest.raises(ValidationError):
        await currency_service.update_currency(db, "USD", {"is_active": False})
    with pytest.raises(ValidationError):
        await currency_service.update_exchange_rate(db, "USD", Decimal("2"))


async def test_rate_updates_append_history(db, currencies):
    await currency_service.update_exchange_rate(db, "SAR", Decimal("3.76"), source="central-bank")
    await currency_service.update_exchange_rate(db, "SAR", Decimal("3.77"))

    history = await currency_service.rate_history(db, "SAR")
    assert [h.rate for h in history] == [Decimal("3.77"), Decimal("3.76")]
    assert history[1].source == "central-bank"
    assert all(h.from_currency == "USD" for h in history)
    assert await currency_service.convert(db, Decimal("100"), "USD", "SAR") == Decimal("377.00")


async def test_set_default_rebases_every_rate(db, currencies):
    assert await currency_service.convert(db, Decimal("100"), "SAR", "USD") == Decimal("26.67")

    sar = await currency_service.set_default(db, "SAR")

    assert sar.exchange_rate == Decimal("1")
    usd = await currency_service.get_currency(db, "USD")
    jpy = await currency_service.get_currency(db, "JPY")
    assert usd.exchange_rate == Decimal("0.266667")
    assert jpy.exchange_rate == Decimal("40.400000")
    # Conversions are unchanged by the move
    assert await currency_service.convert(db, Decimal("100"), "SAR", "USD") == Decimal("26.67")
    assert await currency_service.convert(db, Decimal("100"), "USD", "JPY") == Decimal("15150")

    history = await currency_service.rate_history(db, "USD")
    assert [(h.from_currency, h.rate, h.source) for h in history] == [("SAR", Decimal("0.266667"), "rebase")]
    assert await currency_service.rate_history(db, "SAR", from_currency="SAR") == []

    with pytest.raises(ValidationError):
        await currency_service.update_exchange_rate(db, "SAR", Decimal("1"))
    with pytest.raises(ValidationError):
        await currency_service.update_exchange_rate(db, "SAR", Decimal("3.75"))


async def test_new_default_currency_is_rebased_to_one(db, currencies):
    eur = await currency_service.create_currency(
        db,
        {"code": "EUR", "name": "Euro", "symbol": "€", "exchange_rate": Decimal("0.5"), "is_default": True},
    )

    assert eur.is_default is True
    assert eur.exchange_rate == Decimal("1")
    usd = await currency_service.get_currency(db, "USD")
    assert usd.exchange_rate == Decimal("2.000000")
    assert usd.is_default is False
    assert await currency_service.convert(db, Decimal("10"), "EUR", "USD") == Decimal("20.00")


async def test_convert_on_date_reads_rate_history(db, currencies):
    await currency_service.update_exchange_rate(db, "SAR", Decimal("3.70"), effective_date=date(2026, 1, 1))
    await currency_service.update_exchange_rate(db, "SAR", Decimal("3.80"), effective_date=date(2026, 6, 1))

    convert = currency_service.convert
    assert await convert(db, Decimal("100"), "USD", "SAR", on_date=date(2026, 3, 1)) == Decimal("370.00")
    assert await convert(db, Decimal("100"), "USD", "SAR", on_date=date(2026, 7, 1)) == Decimal("380.00")
    assert await convert(db, Decimal("100"), "USD", "SAR") == Decimal("380.00")
    # Inverse of the recorded pair
    assert await convert(db, Decimal("100"), "SAR", "USD", on_date=date(2026, 3, 1)) == Decimal("27.03")
    # Nothing recorded yet: current cross rate
    assert await convert(db, Decimal("100"), "SAR", "USD", on_date=date(2025, 1, 1)) == Decimal("26.32")


# Cache


async def test_disabled_cache_is_a_miss():
    from ratebook.services.cache_service import cache_service

    assert await cache_service.get_active_taxes() is None
    assert await cache_service.write("ratebook:test", {"a": 1}, ttl=5) is False
