"""Currency service: the configured currencies, the default currency and the
exchange-rate history.

Exactly one currency is the default at any time. Rates are expressed against
the default (base) currency, and every rate change appends a history row
rather than editing an older one.
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.config import settings
from ratebook.errors import NotFoundError, ValidationError
from ratebook.models.currency import Currency, ExchangeRate
from ratebook.services.cache_service import cache_service
from ratebook.services.pricing.composer import quantize
from ratebook.services.pricing.currency import CurrencyInfo, CurrencyTable, convert, convert_at_rate

logger = logging.getLogger(__name__)

# Scale of the exchange_rate columns
RATE_PLACES = 6


class CurrencyService:
    async def list_currencies(self, db: AsyncSession, active_only: bool = False) -> list[Currency]:
        query = select(Currency).order_by(Currency.sort_order, Currency.code)
        if active_only:
            query = query.where(Currency.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_currency(self, db: AsyncSession, code: str) -> Currency:
        result = await db.execute(select(Currency).where(Currency.code == code.upper()))
        currency = result.scalar_one_or_none()
        if currency is None:
            raise NotFoundError(f"Currency {code.upper()} not found", currency=code.upper())
        return currency

    async def get_default(self, db: AsyncSession) -> Currency | None:
        result = await db.execute(select(Currency).where(Currency.is_default.is_(True)))
        return result.scalars().first()

    async def base_code(self, db: AsyncSession) -> str:
        default = await self.get_default(db)
        return default.code if default else settings.base_currency

    async def get_table(self, db: AsyncSession) -> CurrencyTable:
        cached = await cache_service.get_active_currencies()
        if cached is not None:
            return CurrencyTable(CurrencyInfo.from_dict(row) for row in cached)

        infos = [CurrencyInfo.from_model(c) for c in await self.list_currencies(db, active_only=True)]
        await cache_service.set_active_currencies([i.to_dict() for i in infos])
        return CurrencyTable(infos)

    async def create_currency(self, db: AsyncSession, data: dict) -> Currency:
        code = data["code"]
        existing = await db.execute(select(Currency.id).where(Currency.code == code))
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(f"Currency {code} already exists", currency=code)

        has_default = await self.get_default(db) is not None
        make_default = data.pop("is_default", False) or not has_default
        if make_default and not data.get("is_active", True):
            raise ValidationError("The default currency must be active", currency=code)

        currency = Currency(**data, is_default=False)
        db.add(currency)
        await db.flush()
        if make_default:
            await self._move_default(db, currency)
        await db.commit()
        await db.refresh(currency)
        await cache_service.invalidate_currencies()
        logger.info(f"Currency created: {currency.code} rate={currency.exchange_rate} default={currency.is_default}")
        return currency

    async def update_currency(self, db: AsyncSession, code: str, data: dict) -> Currency:
        currency = await self.get_currency(db, code)
        if currency.is_default and data.get("is_active") is False:
            raise ValidationError("The default currency cannot be deactivated", currency=currency.code)
        new_rate = data.pop("exchange_rate", None)
        if currency.is_default and new_rate is not None and Decimal(str(new_rate)) != Decimal("1"):
            raise ValidationError("The default currency's rate is fixed at 1", currency=currency.code)
        for field, value in data.items():
            setattr(currency, field, value)
        if new_rate is not None and Decimal(str(new_rate)) != currency.exchange_rate:
            await self._record_rate(db, currency, Decimal(str(new_rate)), "manual", date.today())
        await db.commit()
        await db.refresh(currency)
        await cache_service.invalidate_currencies()
        logger.info(f"Currency updated: {currency.code} fields={sorted(data)}")
        return currency

    async def delete_currency(self, db: AsyncSession, code: str) -> None:
        currency = await self.get_currency(db, code)
        if currency.is_default:
            raise ValidationError("The default currency cannot be deleted", currency=currency.code)
        await db.delete(currency)
        await db.commit()
        await cache_service.invalidate_currencies()
        logger.info(f"Currency deleted: {currency.code}")

    async def set_default(self, db: AsyncSession, code: str) -> Currency:
        currency = await self.get_currency(db, code)
        if not currency.is_active:
            raise ValidationError("An inactive currency cannot be the default", currency=currency.code)
        await self._move_default(db, currency)
        await db.commit()
        await db.refresh(currency)
        await cache_service.invalidate_currencies()
        logger.info(f"Default currency set to {currency.code}")
        return currency

    async def _move_default(self, db: AsyncSession, currency: Currency) -> None:
        """Make ``currency`` the default and rebase every rate onto it."""
        await db.execute(
            update(Currency)
            .where(Currency.id != currency.id)
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
        currency.is_default = True

        pivot = Decimal(str(currency.exchange_rate or 1))
        currency.exchange_rate = Decimal("1")
        if pivot == Decimal("1"):
            return

        today = date.today()
        others = [c for c in await self.list_currencies(db) if c.id != currency.id]
        for other in others:
            rebased = quantize(Decimal(str(other.exchange_rate)) / pivot, RATE_PLACES)
            db.add(
                ExchangeRate(
                    from_currency=currency.code,
                    to_currency=other.code,
                    rate=rebased,
                    source="rebase",
                    effective_date=today,
                )
            )
            other.exchange_rate = rebased
        await db.flush()
        logger.info(f"Rebased {len(others)} exchange rate(s) onto {currency.code} (previous rate {pivot})")

    async def update_exchange_rate(
        self,
        db: AsyncSession,
        code: str,
        rate: Decimal,
        source: str = "manual",
        effective_date: date | None = None,
    ) -> ExchangeRate:
        currency = await self.get_currency(db, code)
        if currency.is_default:
            raise ValidationError("The default currency's rate is fixed at 1", currency=currency.code)
        history = await self._record_rate(db, currency, rate, source, effective_date or date.today())
        await db.commit()
        await db.refresh(history)
        await cache_service.invalidate_currencies()
        return history

    async def _record_rate(
        self,
        db: AsyncSession,
        currency: Currency,
        rate: Decimal,
        source: str,
        effective_date: date,
    ) -> ExchangeRate:
        base = await self.base_code(db)
        history = ExchangeRate(
            from_currency=base,
            to_currency=currency.code,
            rate=rate,
            source=source,
            effective_date=effective_date,
        )
        db.add(history)
        previous = currency.exchange_rate
        currency.exchange_rate = rate
        await db.flush()
        logger.info(f"Exchange rate {base}->{currency.code}: {previous} -> {rate} (source={source})")
        return history

    async def rate_history(
        self,
        db: AsyncSession,
        to_currency: str,
        from_currency: str | None = None,
        limit: int = 50,
    ) -> list[ExchangeRate]:
        base = (from_currency or await self.base_code(db)).upper()
        result = await db.execute(
            select(ExchangeRate)
            .where(ExchangeRate.from_currency == base, ExchangeRate.to_currency == to_currency.upper())
            .order_by(ExchangeRate.effective_date.desc(), ExchangeRate.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def _rate_on(self, db: AsyncSession, from_code: str, to_code: str, on_date: date) -> ExchangeRate | None:
        result = await db.execute(
            select(ExchangeRate)
            .where(
                ExchangeRate.from_currency == from_code,
                ExchangeRate.to_currency == to_code,
                ExchangeRate.effective_date <= on_date,
            )
            .order_by(ExchangeRate.effective_date.desc(), ExchangeRate.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def pair_rate(self, db: AsyncSession, from_code: str, to_code: str, on_date: date) -> Decimal | None:
        """Historical rate for the pair on ``on_date``: the direct row, else the
        inverse of the reverse row. None when neither was recorded."""
        from_code, to_code = from_code.upper(), to_code.upper()
        direct = await self._rate_on(db, from_code, to_code, on_date)
        if direct is not None:
            return Decimal(str(direct.rate))
        inverse = await self._rate_on(db, to_code, from_code, on_date)
        if inverse is not None and inverse.rate > 0:
            return Decimal("1") / Decimal(str(inverse.rate))
        return None

    async def convert(
        self,
        db: AsyncSession,
        amount: Decimal,
        from_code: str,
        to_code: str,
        on_date: date | None = None,
    ) -> Decimal:
        table = await self.get_table(db)
        if on_date is not None:
            source, target = table.get(from_code), table.get(to_code)
            if source.code != target.code:
                rate = await self.pair_rate(db, source.code, target.code, on_date)
                if rate is not None:
                    return convert_at_rate(amount, rate, target)
                logger.info(f"No {source.code}->{target.code} rate recorded by {on_date}, using current rates")
        return convert(amount, from_code, to_code, table)


currency_service = CurrencyService()
