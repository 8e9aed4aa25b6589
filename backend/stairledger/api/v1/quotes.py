"""
FastAPI router for Quotes
Project: Stair Ledger
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.database import get_db
from stairledger.schemas.quote import (
    PaymentStage,
    QuoteCalculation,
    QuoteCalculationRequest,
    QuoteCreate,
    QuoteList,
    QuoteRead,
    QuoteStatus,
    QuoteUpdate,
)
from stairledger.services.quote_service import QuoteService

router = APIRouter(
    prefix="/quotes",
    tags=["Quotes"],
)


def get_quote_service() -> QuoteService:
    return QuoteService()


@router.get("/", summary="List quotes", response_model=QuoteList)
async def get_quotes(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    status_filter: Optional[QuoteStatus] = Query(None, alias="status"),
    contact_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None, description="Matches quote number or notes"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteList:
    quotes, total = await service.get_all(
        db=db,
        page=page,
        per_page=per_page,
        status_filter=status_filter.value if status_filter else None,
        contact_id=contact_id,
        search=search,
    )
    return QuoteList(
        items=[QuoteRead.model_validate(q) for q in quotes],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post(
    "/calculate",
    summary="Price a quote without saving it",
    response_model=QuoteCalculation,
)
async def calculate_quote_preview(
    request: QuoteCalculationRequest,
    service: QuoteService = Depends(get_quote_service),
) -> QuoteCalculation:
    return service.preview(request)


@router.get("/{quote_id}", summary="Quote details", response_model=QuoteRead)
async def get_quote(
    quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    quote = await service.get_by_id(db=db, quote_id=quote_id)
    return QuoteRead.model_validate(quote)


@router.post(
    "/",
    summary="Create quote",
    response_model=QuoteRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_quote(
    quote_data: QuoteCreate,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    quote = await service.create(db=db, quote_data=quote_data)
    await db.commit()
    return QuoteRead.model_validate(quote)


@router.put("/{quote_id}", summary="Update quote", response_model=QuoteRead)
async def update_quote(
    quote_id: uuid.UUID,
    quote_data: QuoteUpdate,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    quote = await service.update(db=db, quote_id=quote_id, quote_data=quote_data)
    await db.commit()
    return QuoteRead.model_validate(quote)


@router.delete(
    "/{quote_id}",
    summary="Delete quote",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_quote(
    quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> None:
    await service.delete(db=db, quote_id=quote_id)
    await db.commit()


@router.get(
    "/{quote_id}/calculation",
    summary="Pricing breakdown of a saved quote",
    response_model=QuoteCalculation,
)
async def get_quote_calculation(
    quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteCalculation:
    return await service.calculate(db=db, quote_id=quote_id)


@router.get(
    "/{quote_id}/payment-schedule",
    summary="Payment stages of a quote",
    description="Stages derived from the payment terms, with the status of their invoices.",
    response_model=list[PaymentStage],
)
async def get_payment_schedule(
    quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> list[PaymentStage]:
    return await service.payment_schedule(db=db, quote_id=quote_id)
