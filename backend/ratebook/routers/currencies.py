"""Currency router: configured currencies, exchange rates and conversion."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.schemas.currency import (
    ConvertRequest,
    CurrencyCreate,
    CurrencyResponse,
    CurrencyUpdate,
    ExchangeRateResponse,
    ExchangeRateUpdate,
)
from ratebook.services.currency_service import currency_service
from ratebook.services.pricing.currency import format_amount

router = APIRouter()


@router.get("", response_model=list[CurrencyResponse])
async def list_currencies(active_only: bool = False, db: AsyncSession = Depends(get_db)):
    return await currency_service.list_currencies(db, active_only=active_only)


@router.post("", response_model=CurrencyResponse, status_code=201)
async def create_currency(req: CurrencyCreate, db: AsyncSession = Depends(get_db)):
    return await currency_service.create_currency(db, req.model_dump())


@router.get("/rates/history", response_model=list[ExchangeRateResponse])
async def rate_history(
    to_currency: str = Query(..., min_length=3, max_length=3),
    from_currency: str | None = Query(None, min_length=3, max_length=3),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await currency_service.rate_history(db, to_currency, from_currency, limit)


@router.post("/convert")
async def convert_amount(req: ConvertRequest, db: AsyncSession = Depends(get_db)):
    table = await currency_service.get_table(db)
    converted = await currency_service.convert(
        db, req.amount, req.from_currency, req.to_currency, on_date=req.on_date
    )
    target = table.get(req.to_currency)
    return {
        "amount": str(req.amount),
        "from_currency": req.from_currency.upper(),
        "to_currency": target.code,
        "on_date": req.on_date.isoformat() if req.on_date else None,
        "converted": str(converted),
        "formatted": format_amount(converted, target),
    }


@router.get("/{code}", response_model=CurrencyResponse)
async def get_currency(code: str, db: AsyncSession = Depends(get_db)):
    return await currency_service.get_currency(db, code)


@router.put("/{code}", response_model=CurrencyResponse)
async def update_currency(code: str, req: CurrencyUpdate, db: AsyncSession = Depends(get_db)):
    return await currency_service.update_currency(db, code, req.model_dump(exclude_unset=True))


@router.delete("/{code}", status_code=204)
async def delete_currency(code: str, db: AsyncSession = Depends(get_db)):
    await currency_service.delete_currency(db, code)


@router.post("/{code}/default", response_model=CurrencyResponse)
async def set_default_currency(code: str, db: AsyncSession = Depends(get_db)):
    return await currency_service.set_default(db, code)


@router.post("/{code}/rate", response_model=ExchangeRateResponse, status_code=201)
async def update_exchange_rate(code: str, req: ExchangeRateUpdate, db: AsyncSession = Depends(get_db)):
    """Record a new rate; the previous one stays in the history."""
    return await currency_service.update_exchange_rate(db, code, req.rate, req.source, req.effective_date)
