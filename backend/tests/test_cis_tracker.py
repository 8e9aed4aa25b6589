"""
Unit tests for CIS tax years and the CSV export.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from stairledger.services.cis_tracker import (
    NO_RECORDS_MESSAGE,
    csv_filename,
    current_tax_year,
    export_cis_records_to_csv,
    group_by_tax_year,
    tax_year_for,
    total_cis,
)

from conftest import MockCISRecord


# ============================================================
# Tax years
# ============================================================


class TestTaxYear:
    """Tests for the 6 April tax year boundary."""

    @pytest.mark.parametrize("value,expected", [
        (date(2025, 4, 5), "2024-2025"),
        (date(2025, 4, 6), "2025-2026"),
        (date(2025, 1, 1), "2024-2025"),
        (date(2025, 12, 31), "2025-2026"),
        (datetime(2024, 4, 5, 23, 59), "2023-2024"),
    ])
    def test_tax_year_for(self, value, expected):
        assert tax_year_for(value) == expected

    def test_current_tax_year(self):
        assert current_tax_year(date(2026, 3, 1)) == "2025-2026"

    def test_group_by_tax_year(self):
        records = [
            MockCISRecord(tax_year="2024-2025"),
            MockCISRecord(tax_year="2025-2026"),
            MockCISRecord(tax_year="2024-2025"),
        ]
        grouped = group_by_tax_year(records)
        assert sorted(grouped) == ["2024-2025", "2025-2026"]
        assert len(grouped["2024-2025"]) == 2

    def test_total_cis(self):
        records = [MockCISRecord(cis_deduction=Decimal("200")), MockCISRecord(cis_deduction=Decimal("45.5"))]
        assert total_cis(records) == Decimal("245.5")
        assert total_cis([]) == Decimal("0")


# ============================================================
# CSV export
# ============================================================


class TestExportCSV:
    """Tests for the CIS return CSV."""

    def test_rows_and_total(self):
        records = [
            MockCISRecord(
                deduction_date=date(2025, 5, 1),
                invoice_number="INV-2025-0001",
                client_name="Jane Carter",
                client_company="Carter Homes",
                labor_amount=Decimal("1000"),
                cis_rate=Decimal("0.20"),
                cis_deduction=Decimal("200"),
            ),
            MockCISRecord(
                deduction_date=date(2025, 11, 14),
                invoice_number="INV-2025-0007",
                client_name="Tom Reid",
                client_company=None,
                labor_amount=Decimal("333.335"),
                cis_rate=Decimal("0.30"),
                cis_deduction=Decimal("100.0005"),
            ),
        ]
        lines = export_cis_records_to_csv(records).split("\n")

        assert lines[0] == (
            "Date,Invoice Number,Client Name,Client Company,"
            "Labor Amount (£),CIS Rate (%),CIS Deduction (£)"
        )
        assert lines[1] == "01/05/2025,INV-2025-0001,Jane Carter,Carter Homes,1000.00,20,200.00"
        assert lines[2] == "14/11/2025,INV-2025-0007,Tom Reid,,333.34,30,100.00"
        assert lines[3] == "TOTAL,,,,,,300.00"
        assert len(lines) == 4

    def test_fields_with_commas_are_quoted(self):
        record = MockCISRecord(client_company="Smith, Jones & Co")
        assert '"Smith, Jones & Co"' in export_cis_records_to_csv([record])

    def test_no_records(self):
        assert export_cis_records_to_csv([]) == NO_RECORDS_MESSAGE

    def test_filename(self):
        assert csv_filename("2024-2025") == "CIS_Deductions_2024-2025.csv"
