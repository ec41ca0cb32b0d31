from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from ratebook.enums import RewardType
from ratebook.schemas.common import WriteModel


class TierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    min_points: int = Field(0, ge=0)
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    sort_order: int = 0


class TierUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    min_points: int | None = Field(None, ge=0)
    discount_percent: Decimal | None = Field(None, ge=0, le=100)
    sort_order: int | None = None


class TierResponse(BaseModel):
    id: int
    name: str
    min_points: int
    discount_percent: Decimal
    sort_order: int

    model_config = {"from_attributes": True}


class RewardCreate(WriteModel):
    name: str = Field(..., min_length=1, max_length=200)
    points_cost: int = Field(..., gt=0)
    reward_type: RewardType = RewardType.DISCOUNT
    reward_value: Decimal = Field(Decimal("0"), ge=0)
    is_active: bool = True


class RewardUpdate(WriteModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    points_cost: int | None = Field(None, gt=0)
    reward_type: RewardType | None = None
    reward_value: Decimal | None = Field(None, ge=0)
    is_active: bool | None = None


class RewardResponse(BaseModel):
    id: int
    name: str
    points_cost: int
    reward_type: str
    reward_value: Decimal
    is_active: bool

    model_config = {"from_attributes": True}


class EnrollRequest(BaseModel):
    guest_id: int


class EarnRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    booking_id: int | None = None
    description: str | None = Field(None, max_length=255)


class RedeemRequest(BaseModel):
    reward_id: int


class AdjustRequest(BaseModel):
    points: int
    description: str = Field(..., min_length=1, max_length=255)


class MemberResponse(BaseModel):
    id: int
    guest_id: int
    tier_id: int | None
    tier_name: str | None = None
    points_balance: int
    lifetime_points: int
    joined_at: datetime | None


class TransactionResponse(BaseModel):
    id: int
    member_id: int
    type: str
    points: int
    balance_after: int
    booking_id: int | None
    reward_id: int | None
    description: str | None
    created_at: datetime | None

    model_config = {"from_attributes": True}
