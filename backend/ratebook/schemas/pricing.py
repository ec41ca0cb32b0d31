from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from ratebook.enums import ModifierType, RestrictionType, RuleStatus
from ratebook.schemas.common import WriteModel


def _check_range(start: date | None, end: date | None) -> None:
    if start is not None and end is not None and start > end:
        raise ValueError("start_date must be on or before end_date")


# Room types

class RoomTypeCreate(WriteModel):
    name: str = Field(..., min_length=1, max_length=255)
    base_price: Decimal = Field(..., ge=0)
    base_occupancy: int = Field(2, ge=1)
    max_occupancy: int = Field(4, ge=1)
    extra_adult_price: Decimal | None = Field(None, ge=0)
    extra_child_price: Decimal | None = Field(None, ge=0)
    status: RuleStatus = RuleStatus.ACTIVE

    @model_validator(mode="after")
    def _check_occupancy(self):
        if self.max_occupancy < self.base_occupancy:
            raise ValueError("max_occupancy must be at least base_occupancy")
        return self


class RoomTypeUpdate(WriteModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    base_price: Decimal | None = Field(None, ge=0)
    base_occupancy: int | None = Field(None, ge=1)
    max_occupancy: int | None = Field(None, ge=1)
    extra_adult_price: Decimal | None = Field(None, ge=0)
    extra_child_price: Decimal | None = Field(None, ge=0)
    status: RuleStatus | None = None


class RoomTypeResponse(BaseModel):
    id: int
    name: str
    base_price: Decimal
    base_occupancy: int
    max_occupancy: int
    extra_adult_price: Decimal | None
    extra_child_price: Decimal | None
    status: str

    model_config = {"from_attributes": True}


# Rate plans

class RatePlanCreate(WriteModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    room_type_id: int | None = None
    modifier_type: ModifierType = ModifierType.FIXED
    modifier_value: Decimal = Decimal("0")
    min_stay: int = Field(1, ge=1)
    max_stay: int = Field(0, ge=0)
    priority: int = 0
    is_default: bool = False
    valid_from: date | None = None
    valid_to: date | None = None
    status: RuleStatus = RuleStatus.ACTIVE

    @model_validator(mode="after")
    def _check_limits(self):
        if self.max_stay and self.max_stay < self.min_stay:
            raise ValueError("max_stay must be 0 (unlimited) or at least min_stay")
        if self.valid_from and self.valid_to and self.valid_from > self.valid_to:
            raise ValueError("valid_from must be on or before valid_to")
        return self


class RatePlanUpdate(WriteModel):
    code: str | None = Field(None, min_length=1, max_length=50)
    name: str | None = None
    room_type_id: int | None = None
    modifier_type: ModifierType | None = None
    modifier_value: Decimal | None = None
    min_stay: int | None = Field(None, ge=1)
    max_stay: int | None = Field(None, ge=0)
    priority: int | None = None
    is_default: bool | None = None
    valid_from: date | None = None
    valid_to: date | None = None
    status: RuleStatus | None = None


class RatePlanResponse(BaseModel):
    id: int
    code: str
    name: str
    room_type_id: int | None
    modifier_type: str
    modifier_value: Decimal
    min_stay: int
    max_stay: int
    priority: int
    is_default: bool
    valid_from: date | None
    valid_to: date | None
    status: str

    model_config = {"from_attributes": True}


# Seasonal rates

class SeasonalRateCreate(WriteModel):
    name: str = Field(..., min_length=1, max_length=200)
    room_type_id: int | None = None
    rate_plan_id: int | None = None
    start_date: date
    end_date: date
    days_of_week: list[int] = Field(default_factory=list)
    modifier_type: ModifierType = ModifierType.PERCENTAGE
    modifier_value: Decimal
    priority: int = 0
    min_stay: int = Field(1, ge=1)
    status: RuleStatus = RuleStatus.ACTIVE

    @model_validator(mode="after")
    def _check_days(self):
        _check_range(self.start_date, self.end_date)
        if any(d < 1 or d > 7 for d in self.days_of_week):
            raise ValueError("days_of_week entries must be ISO weekdays 1..7")
        self.days_of_week = sorted(set(self.days_of_week))
        return self


class SeasonalRateUpdate(WriteModel):
    name: str | None = None
    room_type_id: int | None = None
    rate_plan_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    days_of_week: list[int] | None = None
    modifier_type: ModifierType | None = None
    modifier_value: Decimal | None = None
    priority: int | None = None
    min_stay: int | None = Field(None, ge=1)
    status: RuleStatus | None = None


class SeasonalRateResponse(BaseModel):
    id: int
    name: str
    room_type_id: int | None
    rate_plan_id: int | None
    start_date: date
    end_date: date
    days_of_week: list[int] | None
    modifier_type: str
    modifier_value: Decimal
    priority: int
    min_stay: int
    status: str

    model_config = {"from_attributes": True}


# Dynamic pricing rules

class DowRuleCreate(WriteModel):
    day_of_week: int = Field(..., ge=0, le=6)
    room_type_id: int | None = None
    modifier_type: ModifierType = ModifierType.PERCENTAGE
    modifier_value: Decimal
    status: RuleStatus = RuleStatus.ACTIVE


class DowRuleUpdate(WriteModel):
    day_of_week: int | None = Field(None, ge=0, le=6)
    room_type_id: int | None = None
    modifier_type: ModifierType | None = None
    modifier_value: Decimal | None = None
    status: RuleStatus | None = None


class DowRuleResponse(BaseModel):
    id: int
    day_of_week: int
    room_type_id: int | None
    modifier_type: str
    modifier_value: Decimal
    status: str

    model_config = {"from_attributes": True}


class OccupancyRuleCreate(WriteModel):
    room_type_id: int | None = None
    threshold_percent: int = Field(70, ge=0, le=100)
    modifier_type: ModifierType = ModifierType.PERCENTAGE
    modifier_value: Decimal
    priority: int = 0
    status: RuleStatus = RuleStatus.ACTIVE


class OccupancyRuleUpdate(WriteModel):
    room_type_id: int | None = None
    threshold_percent: int | None = Field(None, ge=0, le=100)
    modifier_type: ModifierType | None = None
    modifier_value: Decimal | None = None
    priority: int | None = None
    status: RuleStatus | None = None


class OccupancyRuleResponse(BaseModel):
    id: int
    room_type_id: int | None
    threshold_percent: int
    modifier_type: str
    modifier_value: Decimal
    priority: int
    status: str

    model_config = {"from_attributes": True}


class EventOverrideCreate(WriteModel):
    name: str = Field(..., min_length=1, max_length=200)
    room_type_id: int | None = None
    start_date: date
    end_date: date
    modifier_type: ModifierType = ModifierType.PERCENTAGE
    modifier_value: Decimal
    priority: int = 0
    status: RuleStatus = RuleStatus.ACTIVE

    @model_validator(mode="after")
    def _check_dates(self):
        _check_range(self.start_date, self.end_date)
        return self


class EventOverrideUpdate(WriteModel):
    name: str | None = None
    room_type_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    modifier_type: ModifierType | None = None
    modifier_value: Decimal | None = None
    priority: int | None = None
    status: RuleStatus | None = None


class EventOverrideResponse(BaseModel):
    id: int
    name: str
    room_type_id: int | None
    start_date: date
    end_date: date
    modifier_type: str
    modifier_value: Decimal
    priority: int
    status: str

    model_config = {"from_attributes": True}


# Rate restrictions

def _check_restriction(restriction_type: str | None, value: int | None) -> None:
    if restriction_type is None:
        return
    if RestrictionType(restriction_type).needs_value:
        if value is None or value < 1:
            raise ValueError(f"{restriction_type} needs value (nights) of at least 1")
    elif value is not None:
        raise ValueError(f"{restriction_type} does not take a value")


class RateRestrictionCreate(WriteModel):
    room_type_id: int
    rate_plan_id: int | None = None
    restriction_type: RestrictionType
    value: int | None = Field(None, ge=1)
    channel: str | None = Field(None, max_length=50)
    date_from: date
    date_to: date
    days_of_week: list[int] = Field(default_factory=list)
    status: RuleStatus = RuleStatus.ACTIVE

    @model_validator(mode="after")
    def _check(self):
        _check_range(self.date_from, self.date_to)
        _check_restriction(self.restriction_type, self.value)
        if any(d < 1 or d > 7 for d in self.days_of_week):
            raise ValueError("days_of_week entries must be ISO weekdays 1..7")
        self.days_of_week = sorted(set(self.days_of_week))
        return self


class RateRestrictionUpdate(WriteModel):
    rate_plan_id: int | None = None
    restriction_type: RestrictionType | None = None
    value: int | None = Field(None, ge=1)
    channel: str | None = Field(None, max_length=50)
    date_from: date | None = None
    date_to: date | None = None
    days_of_week: list[int] | None = None
    status: RuleStatus | None = None


class RateRestrictionResponse(BaseModel):
    id: int
    room_type_id: int
    rate_plan_id: int | None
    restriction_type: str
    value: int | None
    channel: str | None
    date_from: date
    date_to: date
    days_of_week: list[int] | None
    status: str

    model_config = {"from_attributes": True}


# Quotes

class QuoteRequest(BaseModel):
    room_type_id: int
    check_in: date
    check_out: date
    occupancy_percent: float = Field(0, ge=0, le=100)
    rate_plan_id: int | None = None
    promo_code: str | None = None
    guest_id: int | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)
    adults: int = Field(1, ge=1)
    children: int = Field(0, ge=0)
    loyalty_member_id: int | None = None
    channel: str | None = None


class ResolveRequest(BaseModel):
    room_type_id: int
    night: date
    occupancy_percent: float = Field(0, ge=0, le=100)
    rate_plan_id: int | None = None
    nights: int | None = Field(None, ge=1)


class ParityRequest(BaseModel):
    our_rate: Decimal = Field(..., gt=0)
    their_rate: Decimal = Field(..., ge=0)
    threshold_percent: float | None = Field(None, ge=0)
    channel: str | None = None


class NightlyRateResponse(BaseModel):
    night: date
    base_rate: Decimal
    rate: Decimal
    modifiers: list[dict]
    clamped: bool = False

    model_config = {"from_attributes": True}


class QuoteResponse(BaseModel):
    room_type_id: int
    rate_plan_id: int | None
    check_in: date
    check_out: date
    nights: int
    nightly_rates: list[NightlyRateResponse]
    room_subtotal: Decimal
    service_fee: Decimal
    discount: Decimal
    promo_code: str | None
    taxable_amount: Decimal
    taxes: list[dict]
    tax_total: Decimal
    grand_total: Decimal
    currency: str
    converted_total: Decimal
    currency_fallback: bool
    adults: int
    children: int
    extra_person_fee: Decimal
    member_discount: Decimal
    loyalty_tier: str | None
    skipped_rules: list[dict]
    quoted_at: datetime

    model_config = {"from_attributes": True}
