"""Rate plan router: admin CRUD for rate plans and seasonal rates."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.enums import RuleStatus
from ratebook.errors import NotFoundError, ValidationError
from ratebook.models.pricing import RatePlan, RoomType, SeasonalRate
from ratebook.schemas.pricing import (
    RatePlanCreate,
    RatePlanResponse,
    RatePlanUpdate,
    SeasonalRateCreate,
    SeasonalRateResponse,
    SeasonalRateUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()
seasonal_router = APIRouter()


async def _check_room_type(db: AsyncSession, room_type_id: int | None) -> None:
    if room_type_id is not None and await db.get(RoomType, room_type_id) is None:
        raise ValidationError(f"Room type {room_type_id} does not exist", room_type_id=room_type_id)


async def _clear_other_defaults(db: AsyncSession, plan: RatePlan) -> None:
    scope = (
        RatePlan.room_type_id.is_(None)
        if plan.room_type_id is None
        else RatePlan.room_type_id == plan.room_type_id
    )
    await db.execute(
        update(RatePlan)
        .where(RatePlan.id != plan.id, scope)
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )


async def _get_plan(db: AsyncSession, plan_id: int) -> RatePlan:
    plan = await db.get(RatePlan, plan_id)
    if plan is None:
        raise NotFoundError(f"Rate plan {plan_id} not found", rate_plan_id=plan_id)
    return plan


@router.get("", response_model=list[RatePlanResponse])
async def list_rate_plans(
    room_type_id: int | None = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
):
    query = select(RatePlan).order_by(RatePlan.priority, RatePlan.id)
    if room_type_id is not None:
        query = query.where((RatePlan.room_type_id == room_type_id) | RatePlan.room_type_id.is_(None))
    if not include_inactive:
        query = query.where(RatePlan.status == RuleStatus.ACTIVE.value)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=RatePlanResponse, status_code=201)
async def create_rate_plan(req: RatePlanCreate, db: AsyncSession = Depends(get_db)):
    existing = await db.execute(select(RatePlan.id).where(RatePlan.code == req.code))
    if existing.scalar_one_or_none() is not None:
        raise ValidationError(f"Rate plan code {req.code} already exists", code=req.code)
    await _check_room_type(db, req.room_type_id)

    plan = RatePlan(**req.model_dump())
    db.add(plan)
    await db.flush()
    if plan.is_default:
        await _clear_other_defaults(db, plan)
    await db.commit()
    await db.refresh(plan)
    logger.info(f"Rate plan created: {plan.id} {plan.code} ({plan.modifier_type} {plan.modifier_value})")
    return plan


@router.get("/{plan_id}", response_model=RatePlanResponse)
async def get_rate_plan(plan_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_plan(db, plan_id)


@router.put("/{plan_id}", response_model=RatePlanResponse)
async def update_rate_plan(plan_id: int, req: RatePlanUpdate, db: AsyncSession = Depends(get_db)):
    plan = await _get_plan(db, plan_id)
    update_data = req.model_dump(exclude_unset=True)
    if "room_type_id" in update_data:
        await _check_room_type(db, update_data["room_type_id"])
    for field, value in update_data.items():
        setattr(plan, field, value)
    if plan.max_stay and plan.max_stay < plan.min_stay:
        raise ValidationError("max_stay must be 0 (unlimited) or at least min_stay", rate_plan_id=plan.id)
    if plan.valid_from and plan.valid_to and plan.valid_from > plan.valid_to:
        raise ValidationError("valid_from must be on or before valid_to", rate_plan_id=plan.id)
    if plan.is_default:
        await _clear_other_defaults(db, plan)
    await db.commit()
    await db.refresh(plan)
    logger.info(f"Rate plan updated: {plan.id} fields={sorted(update_data)}")
    return plan


@router.delete("/{plan_id}", status_code=204)
async def delete_rate_plan(plan_id: int, db: AsyncSession = Depends(get_db)):
    plan = await _get_plan(db, plan_id)
    plan.status = RuleStatus.INACTIVE.value
    plan.is_default = False
    await db.commit()
    logger.info(f"Rate plan deactivated: {plan.id} {plan.code}")


# Seasonal rates

async def _get_seasonal(db: AsyncSession, rate_id: int) -> SeasonalRate:
    rate = await db.get(SeasonalRate, rate_id)
    if rate is None:
        raise NotFoundError(f"Seasonal rate {rate_id} not found", seasonal_rate_id=rate_id)
    return rate


@seasonal_router.get("", response_model=list[SeasonalRateResponse])
async def list_seasonal_rates(
    room_type_id: int | None = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
):
    query = select(SeasonalRate).order_by(SeasonalRate.start_date, SeasonalRate.priority, SeasonalRate.id)
    if room_type_id is not None:
        query = query.where(SeasonalRate.room_type_id == room_type_id)
    if not include_inactive:
        query = query.where(SeasonalRate.status == RuleStatus.ACTIVE.value)
    result = await db.execute(query)
    return result.scalars().all()


@seasonal_router.post("", response_model=SeasonalRateResponse, status_code=201)
async def create_seasonal_rate(req: SeasonalRateCreate, db: AsyncSession = Depends(get_db)):
    await _check_room_type(db, req.room_type_id)
    rate = SeasonalRate(**req.model_dump())
    db.add(rate)
    await db.commit()
    await db.refresh(rate)
    logger.info(
        f"Seasonal rate created: {rate.id} {rate.name} {rate.start_date}..{rate.end_date} "
        f"({rate.modifier_type} {rate.modifier_value})"
    )
    return rate


@seasonal_router.get("/{rate_id}", response_model=SeasonalRateResponse)
async def get_seasonal_rate(rate_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_seasonal(db, rate_id)


@seasonal_router.put("/{rate_id}", response_model=SeasonalRateResponse)
async def update_seasonal_rate(rate_id: int, req: SeasonalRateUpdate, db: AsyncSession = Depends(get_db)):
    rate = await _get_seasonal(db, rate_id)
    update_data = req.model_dump(exclude_unset=True)
    if "room_type_id" in update_data:
        await _check_room_type(db, update_data["room_type_id"])
    if any(d < 1 or d > 7 for d in update_data.get("days_of_week") or []):
        raise ValidationError("days_of_week entries must be ISO weekdays 1..7", seasonal_rate_id=rate.id)
    for field, value in update_data.items():
        setattr(rate, field, value)
    if rate.start_date > rate.end_date:
        raise ValidationError("start_date must be on or before end_date", seasonal_rate_id=rate.id)
    await db.commit()
    await db.refresh(rate)
    logger.info(f"Seasonal rate updated: {rate.id} fields={sorted(update_data)}")
    return rate


@seasonal_router.delete("/{rate_id}", status_code=204)
async def delete_seasonal_rate(rate_id: int, db: AsyncSession = Depends(get_db)):
    rate = await _get_seasonal(db, rate_id)
    rate.status = RuleStatus.INACTIVE.value
    await db.commit()
    logger.info(f"Seasonal rate deactivated: {rate.id}")
