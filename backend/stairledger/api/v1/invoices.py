"""
FastAPI router for Invoicing
Project: Stair Ledger

Invoice endpoints, including stage invoices raised from a quote and the
CIS apply/undo operations.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.database import get_db
from stairledger.schemas.invoice import (
    CISOperationResponse,
    CreateInvoiceFromStage,
    InvoiceCreate,
    InvoiceDeletionResponse,
    InvoiceList,
    InvoiceRead,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceUpdate,
)
from stairledger.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/invoices",
    tags=["Invoices"],
)


def get_invoice_service() -> InvoiceService:
    return InvoiceService()


# -------------------------------------------------------------------
# CRUD
# -------------------------------------------------------------------

@router.get("/", summary="List invoices", response_model=InvoiceList)
async def get_invoices(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    quote_id: Optional[uuid.UUID] = Query(None),
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    overdue_only: bool = Query(False, description="Only unpaid invoices past their due date"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceList:
    invoices, total = await service.get_all(
        db=db,
        quote_id=quote_id,
        status_filter=status_filter.value if status_filter else None,
        overdue_only=overdue_only,
        page=page,
        per_page=per_page,
    )
    return InvoiceList(
        items=[InvoiceRead.model_validate(i) for i in invoices],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{invoice_id}", summary="Invoice details", response_model=InvoiceRead)
async def get_invoice(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.get_by_id(db=db, invoice_id=invoice_id)
    return InvoiceRead.model_validate(invoice)


@router.post(
    "/",
    summary="Create invoice",
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice(
    data: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.create(db=db, data=data)
    return InvoiceRead.model_validate(invoice)


@router.post(
    "/from-quote/{quote_id}/stages/{stage}",
    summary="Invoice a payment stage",
    description="Creates the invoice for one payment stage of a quote (deposit, interim, final, full, custom).",
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice_from_stage(
    quote_id: uuid.UUID,
    stage: str,
    data: Optional[CreateInvoiceFromStage] = None,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.create_from_stage(
        db=db,
        quote_id=quote_id,
        stage_key=stage,
        data=data or CreateInvoiceFromStage(),
    )
    return InvoiceRead.model_validate(invoice)


@router.put("/{invoice_id}", summary="Update invoice", response_model=InvoiceRead)
async def update_invoice(
    invoice_id: uuid.UUID,
    data: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.update(db=db, invoice_id=invoice_id, data=data)
    return InvoiceRead.model_validate(invoice)


@router.post("/{invoice_id}/mark-paid", summary="Mark invoice paid", response_model=InvoiceRead)
async def mark_invoice_paid(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.mark_paid(db=db, invoice_id=invoice_id)
    return InvoiceRead.model_validate(invoice)


@router.delete(
    "/{invoice_id}",
    summary="Delete invoice",
    description="Deletes the invoice; its CIS record is removed on a best-effort basis.",
    response_model=InvoiceDeletionResponse,
)
async def delete_invoice(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceDeletionResponse:
    return await service.delete(db=db, invoice_id=invoice_id)


@router.get("/{invoice_id}/totals", summary="Invoice totals", response_model=InvoiceTotals)
async def get_invoice_totals(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceTotals:
    invoice = await service.get_by_id(db=db, invoice_id=invoice_id)
    return service.totals(invoice)


# -------------------------------------------------------------------
# CIS
# -------------------------------------------------------------------

@router.post(
    "/{invoice_id}/cis/apply",
    summary="Apply CIS deduction",
    description=(
        "Withholds CIS on the labour of the invoice and of its quote. "
        "Already applied: returned unchanged with an info notice."
    ),
    response_model=CISOperationResponse,
)
async def apply_cis(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> CISOperationResponse:
    invoice, outcome = await service.apply_cis(db=db, invoice_id=invoice_id)
    return CISOperationResponse(
        invoice=InvoiceRead.model_validate(invoice),
        changed=outcome.changed,
        code=outcome.code,
        notice=outcome.notice,
        severity=outcome.severity,
        calculation=outcome.calculation,
    )


@router.post(
    "/{invoice_id}/cis/undo",
    summary="Undo CIS deduction",
    response_model=CISOperationResponse,
)
async def undo_cis(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> CISOperationResponse:
    invoice, outcome = await service.undo_cis(db=db, invoice_id=invoice_id)
    return CISOperationResponse(
        invoice=InvoiceRead.model_validate(invoice),
        changed=outcome.changed,
        code=outcome.code,
        notice=outcome.notice,
        severity=outcome.severity,
    )
