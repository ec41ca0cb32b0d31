"""Room type router: the base rates every quote starts from."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.enums import RuleStatus
from ratebook.models.pricing import RoomType
from ratebook.schemas.pricing import RoomTypeCreate, RoomTypeResponse, RoomTypeUpdate
from ratebook.services.pricing_service import pricing_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[RoomTypeResponse])
async def list_room_types(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
):
    query = select(RoomType).order_by(RoomType.id)
    if not include_inactive:
        query = query.where(RoomType.status == RuleStatus.ACTIVE.value)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=RoomTypeResponse, status_code=201)
async def create_room_type(req: RoomTypeCreate, db: AsyncSession = Depends(get_db)):
    room = RoomType(**req.model_dump())
    db.add(room)
    await db.commit()
    await db.refresh(room)
    logger.info(f"Room type created: {room.id} {room.name} base={room.base_price}")
    return room


@router.get("/{room_type_id}", response_model=RoomTypeResponse)
async def get_room_type(room_type_id: int, db: AsyncSession = Depends(get_db)):
    return await pricing_service.get_room_type(db, room_type_id)


@router.put("/{room_type_id}", response_model=RoomTypeResponse)
async def update_room_type(room_type_id: int, req: RoomTypeUpdate, db: AsyncSession = Depends(get_db)):
    room = await pricing_service.get_room_type(db, room_type_id)
    update_data = req.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(room, field, value)
    await db.commit()
    await db.refresh(room)
    logger.info(f"Room type updated: {room.id} fields={sorted(update_data)}")
    return room


@router.delete("/{room_type_id}", status_code=204)
async def delete_room_type(room_type_id: int, db: AsyncSession = Depends(get_db)):
    """Soft delete: the room type stops being bookable."""
    room = await pricing_service.get_room_type(db, room_type_id)
    room.status = RuleStatus.INACTIVE.value
    await db.commit()
    logger.info(f"Room type deactivated: {room.id}")
