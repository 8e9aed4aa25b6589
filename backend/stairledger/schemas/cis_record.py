"""
Pydantic schemas for CIS records
Project: Stair Ledger
"""

import datetime
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CISRecordRead(BaseModel):
    """One CIS deduction as reported in the tax year return."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    invoice_id: uuid.UUID = Field(..., serialization_alias="invoiceId")
    invoice_number: str = Field(..., serialization_alias="invoiceNumber")
    client_name: str = Field(..., serialization_alias="clientName")
    client_company: Optional[str] = Field(None, serialization_alias="clientCompany")
    labor_amount: Decimal = Field(..., serialization_alias="laborAmount")
    cis_rate: Decimal = Field(..., serialization_alias="cisRate")
    cis_deduction: Decimal = Field(..., serialization_alias="cisDeduction")
    deduction_date: datetime.date = Field(..., serialization_alias="date")
    tax_year: str = Field(..., serialization_alias="taxYear")
    created_at: datetime.datetime = Field(..., serialization_alias="createdAt")


class CISRecordList(BaseModel):
    """CIS records of one tax year with their total."""

    tax_year: str = Field(..., serialization_alias="taxYear")
    items: list[CISRecordRead] = Field(default_factory=list)
    total_deduction: Decimal = Field(Decimal("0"), serialization_alias="totalDeduction")


class CISTaxYearSummary(BaseModel):
    tax_year: str = Field(..., serialization_alias="taxYear")
    record_count: int = Field(..., serialization_alias="recordCount")
    total_labour: Decimal = Field(..., serialization_alias="totalLabour")
    total_deduction: Decimal = Field(..., serialization_alias="totalDeduction")
