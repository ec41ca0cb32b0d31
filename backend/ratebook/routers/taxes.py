"""Tax router: CRUD plus a calculator over the active taxes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.schemas.billing import TaxCalculateRequest, TaxCreate, TaxResponse, TaxUpdate
from ratebook.services.tax_service import tax_service

router = APIRouter()


@router.get("", response_model=list[TaxResponse])
async def list_taxes(active_only: bool = False, db: AsyncSession = Depends(get_db)):
    return await tax_service.list_taxes(db, active_only=active_only)


@router.post("", response_model=TaxResponse, status_code=201)
async def create_tax(req: TaxCreate, db: AsyncSession = Depends(get_db)):
    return await tax_service.create_tax(db, req.model_dump())


@router.post("/calculate")
async def calculate_taxes(req: TaxCalculateRequest, db: AsyncSession = Depends(get_db)):
    """Tax breakdown for a subtotal in the given line category."""
    result = await tax_service.calculate(db, req.subtotal, req.category)
    return {
        "subtotal": str(result.subtotal),
        "taxes": [line.to_dict() for line in result.breakdown],
        "tax_total": str(result.tax_total),
        "grand_total": str(result.grand_total),
    }


@router.get("/{tax_id}", response_model=TaxResponse)
async def get_tax(tax_id: int, db: AsyncSession = Depends(get_db)):
    return await tax_service.get_tax(db, tax_id)


@router.put("/{tax_id}", response_model=TaxResponse)
async def update_tax(tax_id: int, req: TaxUpdate, db: AsyncSession = Depends(get_db)):
    return await tax_service.update_tax(db, tax_id, req.model_dump(exclude_unset=True))


@router.delete("/{tax_id}", status_code=204)
async def delete_tax(tax_id: int, db: AsyncSession = Depends(get_db)):
    await tax_service.delete_tax(db, tax_id)
