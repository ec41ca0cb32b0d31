from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from ratebook.enums import DiscountType
from ratebook.schemas.common import WriteModel


class PromoCodeCreate(WriteModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(..., ge=0)
    max_discount: Decimal | None = Field(None, ge=0)
    min_amount: Decimal | None = Field(None, ge=0)
    min_nights: int | None = Field(None, ge=1)
    max_uses: int | None = Field(None, ge=1)
    per_guest_limit: int | None = Field(None, ge=1)
    valid_from: date | None = None
    valid_to: date | None = None
    applicable_room_types: list[int] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def _check(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        if self.valid_from and self.valid_to and self.valid_from > self.valid_to:
            raise ValueError("valid_from must be on or before valid_to")
        return self


class PromoCodeUpdate(WriteModel):
    name: str | None = None
    description: str | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(None, ge=0)
    max_discount: Decimal | None = Field(None, ge=0)
    min_amount: Decimal | None = Field(None, ge=0)
    min_nights: int | None = Field(None, ge=1)
    max_uses: int | None = Field(None, ge=1)
    per_guest_limit: int | None = Field(None, ge=1)
    valid_from: date | None = None
    valid_to: date | None = None
    applicable_room_types: list[int] | None = None
    is_active: bool | None = None


class PromoCodeResponse(BaseModel):
    id: int
    code: str
    name: str
    description: str | None
    discount_type: str
    discount_value: Decimal
    max_discount: Decimal | None
    min_amount: Decimal | None
    min_nights: int | None
    max_uses: int | None
    used_count: int
    per_guest_limit: int | None
    valid_from: date | None
    valid_to: date | None
    applicable_room_types: list[int] | None
    is_active: bool

    model_config = {"from_attributes": True}


class PromoValidateRequest(BaseModel):
    code: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    nights: int | None = Field(None, ge=1)
    guest_id: int | None = None
    room_type_id: int | None = None


class PromoRedeemRequest(PromoValidateRequest):
    booking_id: int | None = None


class PromoResult(BaseModel):
    code: str
    original: Decimal
    discount: Decimal
    final: Decimal
