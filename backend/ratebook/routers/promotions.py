"""Promotions router: promo code CRUD, dry-run validation and redemption."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.schemas.promotions import (
    PromoCodeCreate,
    PromoCodeResponse,
    PromoCodeUpdate,
    PromoRedeemRequest,
    PromoResult,
    PromoValidateRequest,
)
from ratebook.services.pricing.promotions import PromoApplication
from ratebook.services.promo_service import promo_service

router = APIRouter()


def _result(application: PromoApplication) -> PromoResult:
    return PromoResult(
        code=application.code,
        original=application.original,
        discount=application.discount,
        final=application.final,
    )


@router.get("", response_model=list[PromoCodeResponse])
async def list_promos(active_only: bool = False, db: AsyncSession = Depends(get_db)):
    return await promo_service.list_promos(db, active_only=active_only)


@router.post("", response_model=PromoCodeResponse, status_code=201)
async def create_promo(req: PromoCodeCreate, db: AsyncSession = Depends(get_db)):
    return await promo_service.create_promo(db, req.model_dump())


@router.post("/validate", response_model=PromoResult)
async def validate_promo(req: PromoValidateRequest, db: AsyncSession = Depends(get_db)):
    """What the code would take off ``amount``, without using it up."""
    application = await promo_service.validate(
        db,
        req.code,
        req.amount,
        nights=req.nights,
        guest_id=req.guest_id,
        room_type_id=req.room_type_id,
    )
    return _result(application)


@router.post("/redeem", response_model=PromoResult)
async def redeem_promo(req: PromoRedeemRequest, db: AsyncSession = Depends(get_db)):
    application = await promo_service.redeem(
        db,
        req.code,
        req.amount,
        nights=req.nights,
        guest_id=req.guest_id,
        room_type_id=req.room_type_id,
        booking_id=req.booking_id,
    )
    return _result(application)


@router.get("/{promo_id}", response_model=PromoCodeResponse)
async def get_promo(promo_id: int, db: AsyncSession = Depends(get_db)):
    return await promo_service.get_promo(db, promo_id)


@router.put("/{promo_id}", response_model=PromoCodeResponse)
async def update_promo(promo_id: int, req: PromoCodeUpdate, db: AsyncSession = Depends(get_db)):
    return await promo_service.update_promo(db, promo_id, req.model_dump(exclude_unset=True))


@router.delete("/{promo_id}", status_code=204)
async def delete_promo(promo_id: int, db: AsyncSession = Depends(get_db)):
    await promo_service.delete_promo(db, promo_id)
