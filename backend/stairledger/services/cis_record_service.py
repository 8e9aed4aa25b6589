"""
Service layer for CIS records
Project: Stair Ledger

Read side of the CIS deductions: per tax year listings, yearly
summaries and the CSV export for the CIS return.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.models import CISRecord
from stairledger.schemas.cis_record import CISTaxYearSummary
from stairledger.services.cis_tracker import (
    csv_filename,
    current_tax_year,
    export_cis_records_to_csv,
    total_cis,
)

logger = logging.getLogger(__name__)


class CISRecordService:

    async def get_by_tax_year(
        self,
        db: AsyncSession,
        tax_year: Optional[str] = None,
    ) -> tuple[str, list[CISRecord]]:
        """Records of a tax year (the current one by default), oldest first."""
        tax_year = tax_year or current_tax_year()
        result = await db.execute(
            select(CISRecord)
            .where(CISRecord.tax_year == tax_year)
            .order_by(CISRecord.deduction_date.asc(), CISRecord.invoice_number.asc())
        )
        return tax_year, list(result.scalars().all())

    async def total_for_tax_year(self, db: AsyncSession, tax_year: Optional[str] = None) -> Decimal:
        _, records = await self.get_by_tax_year(db, tax_year)
        return total_cis(records)

    async def summary(self, db: AsyncSession) -> list[CISTaxYearSummary]:
        """Record count and totals for every tax year, most recent first."""
        result = await db.execute(
            select(
                CISRecord.tax_year,
                func.count(CISRecord.id),
                func.coalesce(func.sum(CISRecord.labor_amount), 0),
                func.coalesce(func.sum(CISRecord.cis_deduction), 0),
            )
            .group_by(CISRecord.tax_year)
            .order_by(CISRecord.tax_year.desc())
        )
        return [
            CISTaxYearSummary(
                tax_year=tax_year,
                record_count=count,
                total_labour=Decimal(labour),
                total_deduction=Decimal(deduction),
            )
            for tax_year, count, labour, deduction in result.all()
        ]

    async def export_csv(self, db: AsyncSession, tax_year: Optional[str] = None) -> tuple[str, str]:
        """
        Returns:
            Tuple of (file name, CSV content)
        """
        tax_year, records = await self.get_by_tax_year(db, tax_year)
        logger.info("Exporting %s CIS records for tax year %s", len(records), tax_year)
        return csv_filename(tax_year), export_cis_records_to_csv(records)
