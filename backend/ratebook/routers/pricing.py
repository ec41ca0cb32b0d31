"""Pricing router: stay quotes, modifier preview and rate parity checks."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.schemas.pricing import ParityRequest, QuoteRequest, QuoteResponse, ResolveRequest
from ratebook.services.pricing_service import pricing_service

router = APIRouter()


@router.post("/quote", response_model=QuoteResponse)
async def quote(req: QuoteRequest, db: AsyncSession = Depends(get_db)):
    """Full price of a stay: nightly rates, fees, promo, taxes, currency."""
    result = await pricing_service.quote_stay(
        db,
        req.room_type_id,
        req.check_in,
        req.check_out,
        occupancy_percent=req.occupancy_percent,
        rate_plan_id=req.rate_plan_id,
        promo_code=req.promo_code,
        guest_id=req.guest_id,
        currency=req.currency,
        adults=req.adults,
        children=req.children,
        loyalty_member_id=req.loyalty_member_id,
        channel=req.channel,
    )
    return QuoteResponse.model_validate(result, from_attributes=True)


@router.post("/resolve")
async def resolve(req: ResolveRequest, db: AsyncSession = Depends(get_db)):
    """Which modifiers apply to one night, in the order they compose."""
    room, resolution, composition = await pricing_service.preview(
        db,
        req.room_type_id,
        req.night,
        occupancy_percent=req.occupancy_percent,
        rate_plan_id=req.rate_plan_id,
        nights=req.nights,
    )
    return {
        "room_type_id": room.id,
        "night": req.night.isoformat(),
        "base_rate": str(room.base_price),
        "modifiers": [m.to_dict() for m in resolution.modifiers],
        "applied": [m.rule_id for m in composition.applied],
        "short_circuited_by": composition.short_circuited_by.rule_id if composition.short_circuited_by else None,
        "rate": str(composition.subtotal),
        "clamped": composition.clamped,
        "skipped_rules": [err.to_dict() for err in resolution.skipped],
    }


@router.post("/parity")
async def parity(req: ParityRequest):
    result = pricing_service.check_parity(req.our_rate, req.their_rate, req.threshold_percent, req.channel)
    return {
        "channel": req.channel,
        "our_rate": str(result.our_rate),
        "their_rate": str(result.their_rate),
        "difference": str(result.difference),
        "pct_difference": str(result.pct_difference),
        "status": result.status.value,
    }
