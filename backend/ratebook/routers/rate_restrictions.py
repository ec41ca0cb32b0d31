"""Rate restriction router: stop-sell, CTA/CTD and stay-length limits."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.enums import RestrictionType
from ratebook.errors import NotFoundError, ValidationError
from ratebook.models.pricing import RatePlan, RateRestriction, RoomType
from ratebook.schemas.pricing import (
    RateRestrictionCreate,
    RateRestrictionResponse,
    RateRestrictionUpdate,
)
from ratebook.services.pricing.restrictions import Restriction, validate_restriction

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get(db: AsyncSession, restriction_id: int) -> RateRestriction:
    restriction = await db.get(RateRestriction, restriction_id)
    if restriction is None:
        raise NotFoundError(f"Rate restriction {restriction_id} not found", restriction_id=restriction_id)
    return restriction


async def _check_refs(db: AsyncSession, room_type_id: int | None, rate_plan_id: int | None) -> None:
    if room_type_id is not None and await db.get(RoomType, room_type_id) is None:
        raise ValidationError(f"Room type {room_type_id} does not exist", room_type_id=room_type_id)
    if rate_plan_id is not None and await db.get(RatePlan, rate_plan_id) is None:
        raise ValidationError(f"Rate plan {rate_plan_id} does not exist", rate_plan_id=rate_plan_id)


@router.get("", response_model=list[RateRestrictionResponse])
async def list_restrictions(
    room_type_id: int | None = None,
    restriction_type: RestrictionType | None = None,
    db: AsyncSession = Depends(get_db),
):
    query = select(RateRestriction).order_by(RateRestriction.date_from, RateRestriction.id)
    if room_type_id is not None:
        query = query.where(RateRestriction.room_type_id == room_type_id)
    if restriction_type is not None:
        query = query.where(RateRestriction.restriction_type == restriction_type.value)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=RateRestrictionResponse, status_code=201)
async def create_restriction(req: RateRestrictionCreate, db: AsyncSession = Depends(get_db)):
    data = req.model_dump()
    await _check_refs(db, data["room_type_id"], data["rate_plan_id"])
    restriction = RateRestriction(**data)
    db.add(restriction)
    await db.commit()
    await db.refresh(restriction)
    logger.info(
        f"Rate restriction created: {restriction.id} {restriction.restriction_type} "
        f"room_type={restriction.room_type_id} {restriction.date_from}..{restriction.date_to}"
    )
    return restriction


@router.get("/{restriction_id}", response_model=RateRestrictionResponse)
async def get_restriction(restriction_id: int, db: AsyncSession = Depends(get_db)):
    return await _get(db, restriction_id)


@router.put("/{restriction_id}", response_model=RateRestrictionResponse)
async def update_restriction(
    restriction_id: int,
    req: RateRestrictionUpdate,
    db: AsyncSession = Depends(get_db),
):
    restriction = await _get(db, restriction_id)
    update_data = req.model_dump(exclude_unset=True)
    if "rate_plan_id" in update_data:
        await _check_refs(db, None, update_data["rate_plan_id"])
    for field, value in update_data.items():
        setattr(restriction, field, value)
    # The merged row has to be as valid as a new one
    validate_restriction(Restriction.from_model(restriction))
    await db.commit()
    await db.refresh(restriction)
    logger.info(f"Rate restriction updated: {restriction.id} fields={sorted(update_data)}")
    return restriction


@router.delete("/{restriction_id}", status_code=204)
async def delete_restriction(restriction_id: int, db: AsyncSession = Depends(get_db)):
    restriction = await _get(db, restriction_id)
    await db.delete(restriction)
    await db.commit()
    logger.info(f"Rate restriction deleted: {restriction_id}")
