"""Folio router: guest bills and their line items."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.enums import FolioStatus
from ratebook.schemas.billing import (
    FolioCreate,
    FolioDetailResponse,
    FolioItemCreate,
    FolioItemResponse,
    FolioResponse,
    RoomChargesRequest,
)
from ratebook.services.folio_service import folio_service

router = APIRouter()


@router.get("", response_model=list[FolioResponse])
async def list_folios(
    status: FolioStatus | None = None,
    guest_id: int | None = None,
    booking_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await folio_service.list_folios(db, status=status, guest_id=guest_id, booking_id=booking_id)


@router.post("", response_model=FolioDetailResponse, status_code=201)
async def create_folio(req: FolioCreate, db: AsyncSession = Depends(get_db)):
    return await folio_service.create_folio(
        db, req.guest_id, booking_id=req.booking_id, currency=req.currency, notes=req.notes
    )


@router.get("/{folio_id}", response_model=FolioDetailResponse)
async def get_folio(folio_id: int, db: AsyncSession = Depends(get_db)):
    return await folio_service.get_folio(db, folio_id)


@router.post("/{folio_id}/items", response_model=FolioItemResponse, status_code=201)
async def add_item(folio_id: int, req: FolioItemCreate, db: AsyncSession = Depends(get_db)):
    return await folio_service.add_item(
        db,
        folio_id,
        req.category,
        req.description,
        req.quantity,
        req.unit_price,
        service_date=req.service_date,
        allow_overpayment=req.allow_overpayment,
    )


@router.post("/{folio_id}/room-charges", response_model=FolioItemResponse, status_code=201)
async def post_room_charges(folio_id: int, req: RoomChargesRequest, db: AsyncSession = Depends(get_db)):
    return await folio_service.post_room_charges(db, folio_id, req.nights, req.rate, req.room_type_name)


@router.delete("/items/{item_id}", response_model=FolioDetailResponse)
async def remove_item(item_id: int, db: AsyncSession = Depends(get_db)):
    return await folio_service.remove_item(db, item_id)


@router.post("/{folio_id}/close", response_model=FolioDetailResponse)
async def close_folio(folio_id: int, db: AsyncSession = Depends(get_db)):
    return await folio_service.close_folio(db, folio_id)


@router.post("/{folio_id}/void", response_model=FolioDetailResponse)
async def void_folio(folio_id: int, db: AsyncSession = Depends(get_db)):
    return await folio_service.void_folio(db, folio_id)
