"""
Pydantic schemas for Invoicing
Project: Stair Ledger

Contains:
- Enums: InvoiceStatus, NoticeSeverity
- Line item schema: InvoiceLineItem
- Financial state: InvoiceFinancials, InvoiceTotals, VatBreakdown
- CIS results: CISCalculation, CISOutcome, CISOperationResponse
- CRUD schemas for Invoice
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from stairledger.core.exceptions import BusinessValidationError
from stairledger.schemas.common import ItemCategory, LineItemKind, to_decimal
from stairledger.schemas.quote import ClientDetails


# -------------------------------------------------------------------
# Enums
# -------------------------------------------------------------------

class InvoiceStatus(str, Enum):
    """Stored invoice status. Overdue is derived from due_date."""
    PENDING = "pending"
    PAID = "paid"


class NoticeSeverity(str, Enum):
    """Severity of a user-facing notice returned by CIS operations."""
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"


# -------------------------------------------------------------------
# Line items
# -------------------------------------------------------------------

class InvoiceLineItem(BaseModel):
    """
    One line on an invoice.

    `type: "cis"` is the legacy marker of a deduction line and is kept in
    sync with `kind`.
    """

    id: Optional[str] = None
    description: str = Field("", max_length=500)
    name: Optional[str] = Field(None, max_length=255)
    amount: Decimal = Field(Decimal("0"), description="Unit amount; negative for deductions")
    quantity: Decimal = Field(Decimal("1"))
    kind: Optional[LineItemKind] = None
    type: Optional[str] = Field(None, max_length=20)
    category: Optional[ItemCategory] = None
    is_labour: bool = Field(
        False,
        validation_alias=AliasChoices("is_labour", "isLabour"),
        serialization_alias="isLabour",
    )

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v):
        return to_decimal(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def lenient_quantity(cls, v):
        return to_decimal(v, default=Decimal("1"))

    @field_validator("category", mode="before")
    @classmethod
    def unknown_category_is_none(cls, v):
        if isinstance(v, str) and v.lower() not in {c.value for c in ItemCategory}:
            return None
        return v

    @model_validator(mode="after")
    def sync_cis_marker(self) -> "InvoiceLineItem":
        if self.type == "cis" and self.kind is None:
            self.kind = LineItemKind.CIS
        elif self.kind == LineItemKind.CIS:
            self.type = "cis"
        return self

    @property
    def total(self) -> Decimal:
        return self.amount * self.quantity


# -------------------------------------------------------------------
# Financial state
# -------------------------------------------------------------------

class InvoiceFinancials(BaseModel):
    """
    The part of an invoice touched by the calculators.

    When `cis_applied` is True, `original_gross_amount - cis_deduction`
    equals `amount` and `original_line_items_before_cis` holds the lines
    to restore on undo. When False, `cis_deduction` is 0 and there is no
    snapshot.
    """

    amount: Decimal = Field(Decimal("0"))
    line_items: list[InvoiceLineItem] = Field(default_factory=list, serialization_alias="lineItems")
    cis_applied: bool = Field(False, serialization_alias="cisApplied")
    cis_deduction: Decimal = Field(Decimal("0"), serialization_alias="cisDeduction")
    labor_total: Optional[Decimal] = Field(None, serialization_alias="laborTotal")
    original_gross_amount: Optional[Decimal] = Field(None, serialization_alias="originalGrossAmount")
    original_line_items_before_cis: Optional[list[InvoiceLineItem]] = Field(
        None, serialization_alias="originalLineItemsBeforeCIS"
    )
    cis_record_id: Optional[uuid.UUID] = Field(None, serialization_alias="cisRecordId")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("amount", "cis_deduction", mode="before")
    @classmethod
    def lenient_money(cls, v):
        return to_decimal(v)

    @field_validator("line_items", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return [] if v is None else v


class VatBreakdown(BaseModel):
    subtotal: Decimal
    vat_rate: Decimal = Field(..., serialization_alias="vatRate")
    vat_amount: Decimal = Field(..., serialization_alias="vatAmount")
    total: Decimal


class InvoiceTotals(BaseModel):
    """Figures shown at the foot of an invoice."""

    subtotal: Decimal
    base_for_vat: Decimal = Field(..., serialization_alias="baseForVat")
    vat_enabled: bool = Field(..., serialization_alias="vatEnabled")
    vat_included: bool = Field(..., serialization_alias="vatIncluded")
    vat_rate: Decimal = Field(..., serialization_alias="vatRate")
    vat_amount: Decimal = Field(..., serialization_alias="vatAmount")
    cis_deduction: Decimal = Field(..., serialization_alias="cisDeduction")
    grand_total: Decimal = Field(..., serialization_alias="grandTotal")


class CISCalculation(BaseModel):
    invoice_total: Decimal = Field(..., serialization_alias="invoiceTotal")
    labour_total: Decimal = Field(..., serialization_alias="labourTotal")
    non_labour_amount: Decimal = Field(..., serialization_alias="nonLabourAmount")
    cis_deduction: Decimal = Field(..., serialization_alias="cisDeduction")
    cis_rate: Decimal = Field(..., serialization_alias="cisRate")
    final_total: Decimal = Field(..., serialization_alias="finalTotal")


class CISOutcome(BaseModel):
    """
    Result of a pure CIS apply/undo transition.

    `changed` is False for every guard (already applied, nothing to undo,
    non-positive gross, no labour); `state` is then the untouched input.
    """

    state: InvoiceFinancials
    changed: bool
    code: str
    notice: str
    severity: NoticeSeverity
    calculation: Optional[CISCalculation] = None


# -------------------------------------------------------------------
# Invoice CRUD
# -------------------------------------------------------------------

class InvoiceBase(BaseModel):
    """Fields shared by invoice create/read."""

    quote_id: Optional[uuid.UUID] = Field(None, serialization_alias="quoteId")
    payment_stage_id: Optional[str] = Field(
        None, max_length=20, serialization_alias="paymentStageId"
    )
    contact_id: Optional[uuid.UUID] = Field(None, serialization_alias="contactId")
    client: ClientDetails = Field(default_factory=ClientDetails)
    description: str = Field("", max_length=500)
    invoice_date: date = Field(default_factory=date.today, serialization_alias="invoiceDate")
    due_date: Optional[date] = Field(None, serialization_alias="dueDate")
    amount: Decimal = Field(Decimal("0"))
    line_items: list[InvoiceLineItem] = Field(default_factory=list, serialization_alias="lineItems")
    vat_enabled: bool = Field(False, serialization_alias="vatEnabled")
    vat_rate: Decimal = Field(Decimal("20"), ge=0, le=100, serialization_alias="vatRate")
    vat_included: bool = Field(False, serialization_alias="vatIncluded")
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class InvoiceCreate(InvoiceBase):
    """Payload for creating an invoice manually."""

    @model_validator(mode="after")
    def validate_invoice(self) -> "InvoiceCreate":
        if not self.client.name or not self.client.name.strip():
            raise BusinessValidationError("Client name is required")
        if self.amount <= 0:
            raise BusinessValidationError("Amount must be greater than zero")
        if self.due_date is not None and self.due_date < self.invoice_date:
            raise BusinessValidationError("Due date cannot be before the invoice date")
        return self


class InvoiceUpdate(BaseModel):
    """
    Partial update of an invoice.

    CIS fields are not editable here: use the CIS apply/undo operations.
    """

    client: Optional[ClientDetails] = None
    description: Optional[str] = Field(None, max_length=500)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    line_items: Optional[list[InvoiceLineItem]] = None
    vat_enabled: Optional[bool] = None
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    vat_included: Optional[bool] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_update(self) -> "InvoiceUpdate":
        if not self.model_fields_set:
            raise BusinessValidationError("At least one field must be changed")
        if self.client is not None and not self.client.name.strip():
            raise BusinessValidationError("Client name is required")
        return self


class InvoiceRead(InvoiceBase):
    """Invoice as returned by the API."""

    id: uuid.UUID
    invoice_number: str = Field(..., serialization_alias="invoiceNumber")
    status: InvoiceStatus
    paid_at: Optional[datetime] = Field(None, serialization_alias="paidAt")
    cis_applied: bool = Field(False, serialization_alias="cisApplied")
    cis_deduction: Decimal = Field(Decimal("0"), serialization_alias="cisDeduction")
    labor_total: Optional[Decimal] = Field(None, serialization_alias="laborTotal")
    original_gross_amount: Optional[Decimal] = Field(None, serialization_alias="originalGrossAmount")
    original_line_items_before_cis: Optional[list[InvoiceLineItem]] = Field(
        None, serialization_alias="originalLineItemsBeforeCIS"
    )
    cis_record_id: Optional[uuid.UUID] = Field(None, serialization_alias="cisRecordId")
    is_overdue: bool = Field(False, serialization_alias="isOverdue")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime = Field(..., serialization_alias="updatedAt")


class InvoiceList(BaseModel):
    """Paginated list of invoices."""

    items: list[InvoiceRead] = Field(default_factory=list)
    total: int = Field(..., serialization_alias="totalItems")
    page: int = Field(..., serialization_alias="currentPage")
    per_page: int = Field(..., serialization_alias="itemsPerPage")


class CreateInvoiceFromStage(BaseModel):
    """Options when raising the invoice for one payment stage of a quote."""

    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class CISOperationResponse(BaseModel):
    """Response of the CIS apply/undo endpoints."""

    invoice: InvoiceRead
    changed: bool
    code: str
    notice: str
    severity: NoticeSeverity
    calculation: Optional[CISCalculation] = None


class InvoiceDeletionResponse(BaseModel):
    """Deletion outcome; the linked CIS record removal is best-effort."""

    deleted: bool = True
    warnings: list[str] = Field(default_factory=list)
