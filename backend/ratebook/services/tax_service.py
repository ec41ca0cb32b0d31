"""Tax service: CRUD for tax rows and cached lookup of the active set."""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.enums import TaxScope
from ratebook.errors import NotFoundError
from ratebook.models.billing import Tax
from ratebook.services.cache_service import cache_service
from ratebook.services.pricing.taxes import TaxResult, TaxRule, apply_taxes

logger = logging.getLogger(__name__)


class TaxService:
    async def list_taxes(self, db: AsyncSession, active_only: bool = False) -> list[Tax]:
        query = select(Tax).order_by(Tax.sort_order, Tax.id)
        if active_only:
            query = query.where(Tax.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_tax(self, db: AsyncSession, tax_id: int) -> Tax:
        tax = await db.get(Tax, tax_id)
        if tax is None:
            raise NotFoundError(f"Tax {tax_id} not found", tax_id=tax_id)
        return tax

    async def create_tax(self, db: AsyncSession, data: dict) -> Tax:
        tax = Tax(**data)
        db.add(tax)
        await db.commit()
        await db.refresh(tax)
        await cache_service.invalidate_taxes()
        logger.info(f"Tax created: {tax.id} {tax.name} {tax.rate} ({tax.type}, {tax.applies_to})")
        return tax

    async def update_tax(self, db: AsyncSession, tax_id: int, data: dict) -> Tax:
        tax = await self.get_tax(db, tax_id)
        for field, value in data.items():
            setattr(tax, field, value)
        await db.commit()
        await db.refresh(tax)
        await cache_service.invalidate_taxes()
        logger.info(f"Tax updated: {tax.id} fields={sorted(data)}")
        return tax

    async def delete_tax(self, db: AsyncSession, tax_id: int) -> None:
        tax = await self.get_tax(db, tax_id)
        await db.delete(tax)
        await db.commit()
        await cache_service.invalidate_taxes()
        logger.info(f"Tax deleted: {tax_id}")

    async def get_active_taxes(self, db: AsyncSession) -> list[TaxRule]:
        """Active taxes as snapshots, served from Redis when warm."""
        cached = await cache_service.get_active_taxes()
        if cached is not None:
            return [TaxRule.from_dict(row) for row in cached]

        rules = [TaxRule.from_model(t) for t in await self.list_taxes(db, active_only=True)]
        await cache_service.set_active_taxes([r.to_dict() for r in rules])
        return rules

    async def calculate(
        self,
        db: AsyncSession,
        subtotal: Decimal,
        category: TaxScope | str = TaxScope.ROOM_CHARGE,
    ) -> TaxResult:
        taxes = await self.get_active_taxes(db)
        return apply_taxes(subtotal, taxes, category)


tax_service = TaxService()
