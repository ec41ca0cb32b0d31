from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from ratebook.enums import FolioItemCategory, TaxScope, TaxType
from ratebook.schemas.common import WriteModel


# Taxes

class TaxCreate(WriteModel):
    name: str = Field(..., min_length=1, max_length=255)
    rate: Decimal = Field(..., ge=0)
    type: TaxType = TaxType.PERCENTAGE
    applies_to: TaxScope = TaxScope.ALL
    is_active: bool = True
    sort_order: int = 0


class TaxUpdate(WriteModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    rate: Decimal | None = Field(None, ge=0)
    type: TaxType | None = None
    applies_to: TaxScope | None = None
    is_active: bool | None = None
    sort_order: int | None = None


class TaxResponse(BaseModel):
    id: int
    name: str
    rate: Decimal
    type: str
    applies_to: str
    is_active: bool
    sort_order: int

    model_config = {"from_attributes": True}


class TaxCalculateRequest(BaseModel):
    subtotal: Decimal = Field(..., ge=0)
    category: TaxScope = TaxScope.ROOM_CHARGE


# Folios

class FolioCreate(BaseModel):
    guest_id: int
    booking_id: int | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)
    notes: str | None = None


class FolioItemCreate(WriteModel):
    category: FolioItemCategory
    description: str = Field(..., min_length=1, max_length=500)
    quantity: int = Field(1, ge=1)
    unit_price: Decimal
    service_date: date | None = None
    allow_overpayment: bool = False


class RoomChargesRequest(BaseModel):
    nights: int = Field(..., ge=1)
    rate: Decimal = Field(..., ge=0)
    room_type_name: str = Field(..., min_length=1)


class FolioItemResponse(BaseModel):
    id: int
    folio_id: int
    category: str
    description: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    tax_breakdown: list[dict] | None
    tax_total: Decimal
    total: Decimal
    service_date: date | None

    model_config = {"from_attributes": True}


class FolioResponse(BaseModel):
    id: int
    folio_number: str
    booking_id: int | None
    guest_id: int
    currency: str
    status: str
    subtotal: Decimal
    tax_total: Decimal
    discount_total: Decimal
    grand_total: Decimal
    paid_amount: Decimal
    balance: Decimal
    notes: str | None
    closed_at: datetime | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class FolioDetailResponse(FolioResponse):
    items: list[FolioItemResponse] = []
