"""
FastAPI router for CIS records
Project: Stair Ledger
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.database import get_db
from stairledger.schemas.cis_record import CISRecordList, CISRecordRead, CISTaxYearSummary
from stairledger.services.cis_record_service import CISRecordService
from stairledger.services.cis_tracker import total_cis

TAX_YEAR_PATTERN = r"^\d{4}-\d{4}$"

router = APIRouter(
    prefix="/cis-records",
    tags=["CIS"],
)


def get_cis_record_service() -> CISRecordService:
    return CISRecordService()


@router.get("/", summary="CIS records of a tax year", response_model=CISRecordList)
async def get_cis_records(
    tax_year: Optional[str] = Query(
        None, pattern=TAX_YEAR_PATTERN, description="e.g. 2024-2025; current tax year when omitted"
    ),
    db: AsyncSession = Depends(get_db),
    service: CISRecordService = Depends(get_cis_record_service),
) -> CISRecordList:
    tax_year, records = await service.get_by_tax_year(db=db, tax_year=tax_year)
    return CISRecordList(
        tax_year=tax_year,
        items=[CISRecordRead.model_validate(r) for r in records],
        total_deduction=total_cis(records),
    )


@router.get("/summary", summary="CIS totals per tax year", response_model=list[CISTaxYearSummary])
async def get_cis_summary(
    db: AsyncSession = Depends(get_db),
    service: CISRecordService = Depends(get_cis_record_service),
) -> list[CISTaxYearSummary]:
    return await service.summary(db=db)


@router.get(
    "/export",
    summary="Download CIS records as CSV",
    response_class=Response,
)
async def export_cis_records(
    tax_year: Optional[str] = Query(None, pattern=TAX_YEAR_PATTERN),
    db: AsyncSession = Depends(get_db),
    service: CISRecordService = Depends(get_cis_record_service),
) -> Response:
    filename, content = await service.export_csv(db=db, tax_year=tax_year)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
