"""Dynamic pricing router: day-of-week, occupancy and event override rules."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.errors import NotFoundError, ValidationError
from ratebook.models.pricing import DowRule, EventOverride, OccupancyRule, RoomType
from ratebook.schemas.pricing import (
    DowRuleCreate,
    DowRuleResponse,
    DowRuleUpdate,
    EventOverrideCreate,
    EventOverrideResponse,
    EventOverrideUpdate,
    OccupancyRuleCreate,
    OccupancyRuleResponse,
    OccupancyRuleUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get(db: AsyncSession, model, rule_id: int):
    rule = await db.get(model, rule_id)
    if rule is None:
        raise NotFoundError(f"{model.__name__} {rule_id} not found", rule_id=rule_id)
    return rule


async def _check_room_type(db: AsyncSession, room_type_id: int | None) -> None:
    if room_type_id is not None and await db.get(RoomType, room_type_id) is None:
        raise ValidationError(f"Room type {room_type_id} does not exist", room_type_id=room_type_id)


async def _create(db: AsyncSession, model, data: dict):
    await _check_room_type(db, data.get("room_type_id"))
    rule = model(**data)
    db.add(rule)
    await db.commit()
    await db.refresh(rule)
    logger.info(f"{model.__name__} created: {rule.id} ({rule.modifier_type} {rule.modifier_value})")
    return rule


async def _update(db: AsyncSession, model, rule_id: int, data: dict):
    rule = await _get(db, model, rule_id)
    if "room_type_id" in data:
        await _check_room_type(db, data["room_type_id"])
    for field, value in data.items():
        setattr(rule, field, value)
    start, end = getattr(rule, "start_date", None), getattr(rule, "end_date", None)
    if start is not None and end is not None and start > end:
        raise ValidationError("start_date must be on or before end_date", rule_id=rule.id)
    await db.commit()
    await db.refresh(rule)
    logger.info(f"{model.__name__} updated: {rule.id} fields={sorted(data)}")
    return rule


async def _delete(db: AsyncSession, model, rule_id: int) -> None:
    rule = await _get(db, model, rule_id)
    await db.delete(rule)
    await db.commit()
    logger.info(f"{model.__name__} deleted: {rule_id}")


# Day of week

@router.get("/dow-rules", response_model=list[DowRuleResponse])
async def list_dow_rules(room_type_id: int | None = None, db: AsyncSession = Depends(get_db)):
    query = select(DowRule).order_by(DowRule.day_of_week, DowRule.id)
    if room_type_id is not None:
        query = query.where(DowRule.room_type_id == room_type_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/dow-rules", response_model=DowRuleResponse, status_code=201)
async def create_dow_rule(req: DowRuleCreate, db: AsyncSession = Depends(get_db)):
    return await _create(db, DowRule, req.model_dump())


@router.put("/dow-rules/{rule_id}", response_model=DowRuleResponse)
async def update_dow_rule(rule_id: int, req: DowRuleUpdate, db: AsyncSession = Depends(get_db)):
    return await _update(db, DowRule, rule_id, req.model_dump(exclude_unset=True))


@router.delete("/dow-rules/{rule_id}", status_code=204)
async def delete_dow_rule(rule_id: int, db: AsyncSession = Depends(get_db)):
    await _delete(db, DowRule, rule_id)


# Occupancy

@router.get("/occupancy-rules", response_model=list[OccupancyRuleResponse])
async def list_occupancy_rules(room_type_id: int | None = None, db: AsyncSession = Depends(get_db)):
    query = select(OccupancyRule).order_by(OccupancyRule.threshold_percent, OccupancyRule.id)
    if room_type_id is not None:
        query = query.where(OccupancyRule.room_type_id == room_type_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/occupancy-rules", response_model=OccupancyRuleResponse, status_code=201)
async def create_occupancy_rule(req: OccupancyRuleCreate, db: AsyncSession = Depends(get_db)):
    return await _create(db, OccupancyRule, req.model_dump())


@router.put("/occupancy-rules/{rule_id}", response_model=OccupancyRuleResponse)
async def update_occupancy_rule(rule_id: int, req: OccupancyRuleUpdate, db: AsyncSession = Depends(get_db)):
    return await _update(db, OccupancyRule, rule_id, req.model_dump(exclude_unset=True))


@router.delete("/occupancy-rules/{rule_id}", status_code=204)
async def delete_occupancy_rule(rule_id: int, db: AsyncSession = Depends(get_db)):
    await _delete(db, OccupancyRule, rule_id)


# Event overrides

@router.get("/event-overrides", response_model=list[EventOverrideResponse])
async def list_event_overrides(room_type_id: int | None = None, db: AsyncSession = Depends(get_db)):
    query = select(EventOverride).order_by(EventOverride.start_date, EventOverride.priority, EventOverride.id)
    if room_type_id is not None:
        query = query.where(EventOverride.room_type_id == room_type_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/event-overrides", response_model=EventOverrideResponse, status_code=201)
async def create_event_override(req: EventOverrideCreate, db: AsyncSession = Depends(get_db)):
    return await _create(db, EventOverride, req.model_dump())


@router.put("/event-overrides/{rule_id}", response_model=EventOverrideResponse)
async def update_event_override(rule_id: int, req: EventOverrideUpdate, db: AsyncSession = Depends(get_db)):
    return await _update(db, EventOverride, rule_id, req.model_dump(exclude_unset=True))


@router.delete("/event-overrides/{rule_id}", status_code=204)
async def delete_event_override(rule_id: int, db: AsyncSession = Depends(get_db)):
    await _delete(db, EventOverride, rule_id)
