"""Folio service: guest bills, their line items and the open/closed/void
state machine.

Only ``open`` folios accept changes. ``close`` and ``void`` are one-way.
Totals are recomputed from the items after every change, never patched.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ratebook.enums import FolioItemCategory, FolioStatus, TaxScope
from ratebook.errors import FolioStateError, InsufficientFundsError, NotFoundError
from ratebook.models.billing import Folio, FolioItem
from ratebook.services.currency_service import currency_service
from ratebook.services.pricing.composer import ZERO, quantize
from ratebook.services.tax_service import tax_service

logger = logging.getLogger(__name__)

# Categories whose subtotal and tax count towards the folio's charges
_CHARGE_CATEGORIES = (
    FolioItemCategory.ROOM_CHARGE,
    FolioItemCategory.EXTRA,
    FolioItemCategory.SERVICE,
    FolioItemCategory.TAX_ADJUSTMENT,
)


def compute_totals(items: list[FolioItem]) -> dict[str, Decimal]:
    subtotal = tax_total = discount_total = paid = ZERO
    for item in items:
        category = FolioItemCategory(item.category)
        if category in _CHARGE_CATEGORIES:
            subtotal += item.subtotal or ZERO
            tax_total += item.tax_total or ZERO
        elif category is FolioItemCategory.DISCOUNT:
            discount_total += abs(item.total or ZERO)
        elif category is FolioItemCategory.PAYMENT:
            paid += abs(item.total or ZERO)
        else:
            raise ValueError(f"Unhandled folio item category: {category!r}")
    return {
        "subtotal": subtotal,
        "tax_total": tax_total,
        "discount_total": discount_total,
        "grand_total": quantize(subtotal + tax_total - discount_total),
        "paid_amount": paid,
    }


class FolioService:
    async def get_folio(self, db: AsyncSession, folio_id: int) -> Folio:
        result = await db.execute(
            select(Folio)
            .options(selectinload(Folio.items))
            .where(Folio.id == folio_id)
            .execution_options(populate_existing=True)
        )
        folio = result.scalar_one_or_none()
        if folio is None:
            raise NotFoundError(f"Folio {folio_id} not found", folio_id=folio_id)
        return folio

    async def list_folios(
        self,
        db: AsyncSession,
        status: FolioStatus | None = None,
        guest_id: int | None = None,
        booking_id: int | None = None,
    ) -> list[Folio]:
        query = select(Folio).order_by(Folio.id.desc())
        if status is not None:
            query = query.where(Folio.status == FolioStatus(status).value)
        if guest_id is not None:
            query = query.where(Folio.guest_id == guest_id)
        if booking_id is not None:
            query = query.where(Folio.booking_id == booking_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    def folio_number(folio_id: int, issued: date) -> str:
        # Sequence part is the row id
        return f"F-{issued:%Y%m%d}-{folio_id:05d}"

    async def create_folio(
        self,
        db: AsyncSession,
        guest_id: int,
        booking_id: int | None = None,
        currency: str | None = None,
        notes: str | None = None,
    ) -> Folio:
        code = currency.upper() if currency else await currency_service.base_code(db)
        folio = Folio(
            folio_number=f"pending-{uuid.uuid4().hex[:20]}",
            guest_id=guest_id,
            booking_id=booking_id,
            currency=code,
            status=FolioStatus.OPEN.value,
            notes=notes,
        )
        db.add(folio)
        await db.flush()
        folio.folio_number = self.folio_number(folio.id, date.today())
        await db.commit()
        logger.info(f"Folio created: {folio.folio_number} guest={guest_id} booking={booking_id}")
        return await self.get_folio(db, folio.id)

    def _require_open(self, folio: Folio, action: str) -> None:
        if FolioStatus(folio.status) is not FolioStatus.OPEN:
            raise FolioStateError(
                f"Cannot {action} a {folio.status} folio",
                folio_id=folio.id,
                status=folio.status,
            )

    async def _recalculate(self, db: AsyncSession, folio: Folio) -> None:
        items = (
            await db.execute(select(FolioItem).where(FolioItem.folio_id == folio.id))
        ).scalars().all()
        for field, value in compute_totals(list(items)).items():
            setattr(folio, field, value)

    async def add_item(
        self,
        db: AsyncSession,
        folio_id: int,
        category: FolioItemCategory | str,
        description: str,
        quantity: int,
        unit_price: Decimal,
        service_date: date | None = None,
        allow_overpayment: bool = False,
    ) -> FolioItem:
        folio = await self.get_folio(db, folio_id)
        self._require_open(folio, "add items to")
        category = FolioItemCategory(category)

        subtotal = quantize(Decimal(quantity) * Decimal(str(unit_price)))
        tax_breakdown: list[dict] = []
        tax_total = ZERO
        if category.is_charge:
            taxed = await tax_service.calculate(db, subtotal, TaxScope(category.value))
            tax_breakdown = [line.to_dict() for line in taxed.breakdown]
            tax_total = taxed.tax_total
        total = subtotal + tax_total

        if category in (FolioItemCategory.DISCOUNT, FolioItemCategory.PAYMENT):
            subtotal = abs(subtotal)
            total = subtotal

        if category is FolioItemCategory.PAYMENT and not allow_overpayment and total > folio.balance:
            raise InsufficientFundsError(
                f"Payment of {total} exceeds the outstanding balance of {folio.balance}",
                folio_id=folio.id,
                payment=str(total),
                balance=str(folio.balance),
            )

        item = FolioItem(
            folio_id=folio.id,
            category=category.value,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=subtotal,
            tax_breakdown=tax_breakdown,
            tax_total=tax_total,
            total=total,
            service_date=service_date or date.today(),
        )
        db.add(item)
        await db.flush()
        await self._recalculate(db, folio)
        await db.commit()
        logger.info(f"Folio item added: folio={folio.folio_number} item={item.id} {category.value} total={total}")
        return item

    async def post_room_charges(
        self,
        db: AsyncSession,
        folio_id: int,
        nights: int,
        rate: Decimal,
        room_type_name: str,
    ) -> FolioItem:
        return await self.add_item(
            db,
            folio_id,
            FolioItemCategory.ROOM_CHARGE,
            f"{room_type_name} - {nights} night(s)",
            nights,
            rate,
        )

    async def remove_item(self, db: AsyncSession, item_id: int) -> Folio:
        item = await db.get(FolioItem, item_id)
        if item is None:
            raise NotFoundError(f"Folio item {item_id} not found", item_id=item_id)
        folio = await self.get_folio(db, item.folio_id)
        self._require_open(folio, "remove items from")

        await db.delete(item)
        await db.flush()
        await self._recalculate(db, folio)
        await db.commit()
        logger.info(f"Folio item removed: folio={folio.folio_number} item={item_id}")
        return await self.get_folio(db, folio.id)

    async def close_folio(self, db: AsyncSession, folio_id: int) -> Folio:
        folio = await self.get_folio(db, folio_id)
        self._require_open(folio, "close")
        folio.status = FolioStatus.CLOSED.value
        folio.closed_at = datetime.now(timezone.utc)
        await db.commit()
        logger.info(f"Folio closed: {folio.folio_number} balance={folio.balance}")
        return await self.get_folio(db, folio.id)

    async def void_folio(self, db: AsyncSession, folio_id: int) -> Folio:
        folio = await self.get_folio(db, folio_id)
        self._require_open(folio, "void")
        folio.status = FolioStatus.VOID.value
        await db.commit()
        logger.info(f"Folio voided: {folio.folio_number}")
        return await self.get_folio(db, folio.id)


folio_service = FolioService()
