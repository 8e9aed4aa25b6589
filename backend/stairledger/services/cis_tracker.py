"""
CIS tax year helpers and CSV export
Project: Stair Ledger

The UK tax year runs from 6 April to 5 April of the following year and
is labelled "YYYY-YYYY" (e.g. "2024-2025").
"""

import csv
import io
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Union

PENNY = Decimal("0.01")

CSV_HEADERS = [
    "Date",
    "Invoice Number",
    "Client Name",
    "Client Company",
    "Labor Amount (£)",
    "CIS Rate (%)",
    "CIS Deduction (£)",
]
NO_RECORDS_MESSAGE = "No CIS records found for the selected tax year."


def tax_year_for(value: Union[date, datetime]) -> str:
    """Tax year label of a date: 5 April belongs to the year before."""
    year = value.year
    if (value.month, value.day) < (4, 6):
        return f"{year - 1}-{year}"
    return f"{year}-{year + 1}"


def current_tax_year(today: Optional[date] = None) -> str:
    return tax_year_for(today or date.today())


def group_by_tax_year(records: Iterable[Any]) -> dict[str, list[Any]]:
    grouped: dict[str, list[Any]] = defaultdict(list)
    for record in records:
        grouped[record.tax_year or current_tax_year()].append(record)
    return dict(grouped)


def total_cis(records: Iterable[Any]) -> Decimal:
    return sum((Decimal(record.cis_deduction or 0) for record in records), Decimal("0"))


def _money(value: Any) -> str:
    return str(Decimal(value or 0).quantize(PENNY, rounding=ROUND_HALF_UP))


def _percent(rate: Any) -> str:
    return str((Decimal(rate or 0) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def export_cis_records_to_csv(records: Iterable[Any]) -> str:
    """
    CSV of CIS deductions for a tax year, with a closing TOTAL row.

    Dates are written DD/MM/YYYY, amounts to two decimals and the rate as
    a whole percentage.
    """
    records = list(records)
    if not records:
        return NO_RECORDS_MESSAGE

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in records:
        writer.writerow([
            record.deduction_date.strftime("%d/%m/%Y"),
            record.invoice_number,
            record.client_name,
            record.client_company or "",
            _money(record.labor_amount),
            _percent(record.cis_rate),
            _money(record.cis_deduction),
        ])
    writer.writerow(["TOTAL", "", "", "", "", "", _money(total_cis(records))])

    return buffer.getvalue().rstrip("\n")


def csv_filename(tax_year: str) -> str:
    return f"CIS_Deductions_{tax_year}.csv"
