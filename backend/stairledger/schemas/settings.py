"""
Pydantic schemas for the company profile
Project: Stair Ledger

The business details printed on quotes, invoices and CIS statements.
They come from configuration and are read-only over the API.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from stairledger.core.config import Settings


class CISIdentity(BaseModel):
    """How the business is registered with HMRC for CIS."""

    company_name: str = Field(..., serialization_alias="companyName")
    utr: Optional[str] = Field(None, description="10-digit Unique Taxpayer Reference")
    ni_number: Optional[str] = Field(None, serialization_alias="niNumber")
    default_rate: Decimal = Field(..., serialization_alias="defaultRate")


class CompanyProfile(BaseModel):
    """Company, VAT and CIS details for document headers."""

    name: str
    address: str = ""
    email: str = ""
    phone: str = ""
    vat_enabled: bool = Field(..., serialization_alias="vatEnabled")
    vat_rate: Decimal = Field(..., serialization_alias="vatRate")
    vat_number: Optional[str] = Field(None, serialization_alias="vatNumber")
    cis: CISIdentity

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompanyProfile":
        # The CIS name falls back to the trading name; blanks become null
        return cls(
            name=settings.company_name,
            address=settings.company_address,
            email=settings.company_email,
            phone=settings.company_phone,
            vat_enabled=settings.vat_enabled,
            vat_rate=settings.vat_rate,
            vat_number=settings.vat_number or None,
            cis=CISIdentity(
                company_name=settings.cis_company_name or settings.company_name,
                utr=settings.cis_utr or None,
                ni_number=settings.cis_ni_number or None,
                default_rate=settings.cis_default_rate,
            ),
        )
