from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class CurrencyCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=3)
    name: str = Field(..., min_length=1, max_length=100)
    symbol: str = Field(..., min_length=1, max_length=10)
    exchange_rate: Decimal = Field(..., gt=0)
    decimal_places: int = Field(2, ge=0, le=4)
    is_default: bool = False
    is_active: bool = True
    sort_order: int = 0

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        if not value.isalpha():
            raise ValueError("code must be three letters")
        return value.upper()


class CurrencyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    symbol: str | None = Field(None, min_length=1, max_length=10)
    exchange_rate: Decimal | None = Field(None, gt=0)
    decimal_places: int | None = Field(None, ge=0, le=4)
    is_active: bool | None = None
    sort_order: int | None = None


class CurrencyResponse(BaseModel):
    id: int
    code: str
    name: str
    symbol: str
    exchange_rate: Decimal
    decimal_places: int
    is_default: bool
    is_active: bool
    sort_order: int

    model_config = {"from_attributes": True}


class ExchangeRateUpdate(BaseModel):
    rate: Decimal = Field(..., gt=0)
    source: str = Field("manual", max_length=50)
    effective_date: date | None = None


class ExchangeRateResponse(BaseModel):
    id: int
    from_currency: str
    to_currency: str
    rate: Decimal
    source: str
    effective_date: date

    model_config = {"from_attributes": True}


class ConvertRequest(BaseModel):
    amount: Decimal
    from_currency: str = Field(..., min_length=3, max_length=3)
    to_currency: str = Field(..., min_length=3, max_length=3)
    on_date: date | None = None
