"""Promo code service: lookup, dry-run validation and redemption.

Redemption is the only place ``used_count`` moves. It locks the promo row,
re-runs every check with the guest's usage count, then increments with a
conditional UPDATE so two concurrent redemptions cannot both take the last use.
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.errors import NotFoundError, PromoError, PromoFailReason, ValidationError
from ratebook.models.promotions import PromoCode, PromoCodeUsage
from ratebook.services.pricing.promotions import (
    PromoApplication,
    PromoContext,
    PromoRule,
    apply_promo,
)

logger = logging.getLogger(__name__)


class PromoService:
    async def list_promos(self, db: AsyncSession, active_only: bool = False) -> list[PromoCode]:
        query = select(PromoCode).order_by(PromoCode.id)
        if active_only:
            query = query.where(PromoCode.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_promo(self, db: AsyncSession, promo_id: int) -> PromoCode:
        promo = await db.get(PromoCode, promo_id)
        if promo is None:
            raise NotFoundError(f"Promo code {promo_id} not found", promo_id=promo_id)
        return promo

    async def find_by_code(self, db: AsyncSession, code: str, for_update: bool = False) -> PromoCode:
        query = select(PromoCode).where(PromoCode.code == code.strip().upper())
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        promo = result.scalar_one_or_none()
        if promo is None:
            raise PromoError(PromoFailReason.NOT_FOUND, promo_code=code.strip().upper())
        return promo

    async def create_promo(self, db: AsyncSession, data: dict) -> PromoCode:
        existing = await db.execute(select(PromoCode.id).where(PromoCode.code == data["code"]))
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(f"Promo code {data['code']} already exists", promo_code=data["code"])
        promo = PromoCode(**data)
        db.add(promo)
        await db.commit()
        await db.refresh(promo)
        logger.info(f"Promo code created: {promo.code} ({promo.discount_type} {promo.discount_value})")
        return promo

    async def update_promo(self, db: AsyncSession, promo_id: int, data: dict) -> PromoCode:
        promo = await self.get_promo(db, promo_id)
        for field, value in data.items():
            setattr(promo, field, value)
        if promo.valid_from and promo.valid_to and promo.valid_from > promo.valid_to:
            raise ValidationError("valid_from must be on or before valid_to", promo_code=promo.code)
        await db.commit()
        await db.refresh(promo)
        logger.info(f"Promo code updated: {promo.code} fields={sorted(data)}")
        return promo

    async def delete_promo(self, db: AsyncSession, promo_id: int) -> None:
        promo = await self.get_promo(db, promo_id)
        await db.delete(promo)
        await db.commit()
        logger.info(f"Promo code deleted: {promo.code}")

    async def guest_usage_count(self, db: AsyncSession, promo_id: int, guest_id: int | None) -> int:
        if guest_id is None:
            return 0
        result = await db.execute(
            select(func.count(PromoCodeUsage.id)).where(
                PromoCodeUsage.promo_code_id == promo_id,
                PromoCodeUsage.guest_id == guest_id,
            )
        )
        return result.scalar_one()

    async def _context(
        self,
        db: AsyncSession,
        promo: PromoCode,
        amount: Decimal,
        nights: int | None,
        guest_id: int | None,
        room_type_id: int | None,
    ) -> PromoContext:
        return PromoContext(
            today=date.today(),
            nights=nights,
            guest_id=guest_id,
            guest_usage_count=await self.guest_usage_count(db, promo.id, guest_id),
            amount=amount,
            room_type_id=room_type_id,
        )

    async def validate(
        self,
        db: AsyncSession,
        code: str,
        amount: Decimal,
        *,
        nights: int | None = None,
        guest_id: int | None = None,
        room_type_id: int | None = None,
    ) -> PromoApplication:
        """Dry run: what the code would take off ``amount``. Records nothing."""
        promo = await self.find_by_code(db, code)
        context = await self._context(db, promo, amount, nights, guest_id, room_type_id)
        return apply_promo(amount, PromoRule.from_model(promo), context)

    async def redeem(
        self,
        db: AsyncSession,
        code: str,
        amount: Decimal,
        *,
        nights: int | None = None,
        guest_id: int | None = None,
        room_type_id: int | None = None,
        booking_id: int | None = None,
    ) -> PromoApplication:
        promo = await self.find_by_code(db, code, for_update=True)
        context = await self._context(db, promo, amount, nights, guest_id, room_type_id)
        try:
            application = apply_promo(amount, PromoRule.from_model(promo), context)
        except PromoError:
            await db.rollback()
            raise

        stmt = (
            update(PromoCode)
            .where(PromoCode.id == promo.id)
            .values(used_count=PromoCode.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        if promo.max_uses is not None:
            stmt = stmt.where(PromoCode.used_count < promo.max_uses)
        result = await db.execute(stmt)
        if result.rowcount == 0:
            promo_code = promo.code
            await db.rollback()
            raise PromoError(PromoFailReason.USAGE_LIMIT, promo_code=promo_code)

        db.add(
            PromoCodeUsage(
                promo_code_id=promo.id,
                guest_id=guest_id,
                booking_id=booking_id,
                discount_amount=application.discount,
            )
        )
        await db.commit()
        await db.refresh(promo)
        logger.info(
            f"Promo usage recorded: {promo.code} guest={guest_id} booking={booking_id} "
            f"discount={application.discount} uses={promo.used_count}/{promo.max_uses or 'unlimited'}"
        )
        return application


promo_service = PromoService()
