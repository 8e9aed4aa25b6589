"""
Unit tests for CISRecordService.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from stairledger.services.cis_record_service import CISRecordService
from stairledger.services.cis_tracker import NO_RECORDS_MESSAGE

from conftest import MockCISRecord


def _records_result(records):
    result = MagicMock()
    result.scalars.return_value.all.return_value = records
    return result


class TestCISRecordService:
    """Tests for the CIS record listings and export."""

    @pytest.mark.asyncio
    async def test_export_csv(self, mock_db):
        mock_db.execute.return_value = _records_result([MockCISRecord(), MockCISRecord()])
        filename, content = await CISRecordService().export_csv(mock_db, "2025-2026")

        assert filename == "CIS_Deductions_2025-2026.csv"
        assert content.splitlines()[-1] == "TOTAL,,,,,,400.00"

    @pytest.mark.asyncio
    async def test_export_empty_year(self, mock_db):
        mock_db.execute.return_value = _records_result([])
        _, content = await CISRecordService().export_csv(mock_db, "2019-2020")
        assert content == NO_RECORDS_MESSAGE

    @pytest.mark.asyncio
    async def test_total_for_tax_year(self, mock_db):
        mock_db.execute.return_value = _records_result([
            MockCISRecord(cis_deduction=Decimal("200")),
            MockCISRecord(cis_deduction=Decimal("60")),
        ])
        total = await CISRecordService().total_for_tax_year(mock_db, "2025-2026")
        assert total == Decimal("260")

    @pytest.mark.asyncio
    async def test_summary(self, mock_db):
        result = MagicMock()
        result.all.return_value = [
            ("2025-2026", 2, Decimal("1300"), Decimal("260")),
            ("2024-2025", 1, Decimal("500"), Decimal("100")),
        ]
        mock_db.execute.return_value = result

        summary = await CISRecordService().summary(mock_db)

        assert [s.tax_year for s in summary] == ["2025-2026", "2024-2025"]
        assert summary[0].record_count == 2
        assert summary[0].total_deduction == Decimal("260")
