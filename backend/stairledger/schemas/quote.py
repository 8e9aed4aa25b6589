"""
Pydantic schemas for Quotes
Project: Stair Ledger

Contains:
- Enums: DistributionMethod, QuoteStatus, PaymentTermsCode
- Quote line schemas: QuoteItem, HiddenCost, ItemTotal
- Calculation results: QuoteCalculation, PaymentStage
- CRUD schemas for Quote
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
)

from stairledger.schemas.common import ItemCategory, LineItemKind, to_decimal


# -------------------------------------------------------------------
# Enums
# -------------------------------------------------------------------

class DistributionMethod(str, Enum):
    """How hidden costs are spread over visible items."""
    EVEN = "even"
    PROPORTIONAL = "proportional"


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class PaymentTermsCode(str, Enum):
    """Payment schedule templates offered on a quote."""
    DEPOSIT_FINAL = "1"
    DEPOSIT_INTERIM_FINAL = "2"
    CUSTOM_LEGACY = "3"
    FULL_BEFORE_DELIVERY = "4"
    CUSTOM = "custom"


class StageStatus(str, Enum):
    """Status of a payment stage derived from its invoices."""
    NOT_INVOICED = "Not invoiced"
    PENDING = "Invoiced - Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


# -------------------------------------------------------------------
# Quote lines
# -------------------------------------------------------------------

class QuoteItem(BaseModel):
    """
    An item selected into a quote, either from the catalogue or ad hoc.

    Blank numeric fields are read as zero, the way the quote builder
    always treated them. Negative values are not rejected here: callers
    sanitise input before pricing.
    """

    id: Optional[str] = Field(None, description="Opaque item id")
    catalog_item_id: Optional[uuid.UUID] = Field(
        None,
        validation_alias=AliasChoices("catalog_item_id", "catalogItemId"),
        serialization_alias="catalogItemId",
    )
    name: str = Field("", max_length=255)
    description: str = Field("", max_length=2000)
    category: ItemCategory = Field(ItemCategory.OTHER)
    supplier: Optional[str] = Field(None, description="Supplier id reference")
    cost: Decimal = Field(Decimal("0"), description="Unit cost")
    quantity: Decimal = Field(Decimal("1"), description="Quantity")
    markup: Optional[Decimal] = Field(
        None,
        ge=0,
        le=100,
        description="Item markup percentage; the quote's global markup when empty",
    )
    hide_in_quote: bool = Field(
        False,
        validation_alias=AliasChoices("hide_in_quote", "hideInQuote"),
        serialization_alias="hideInQuote",
        description="Excluded from visible pricing but still feeds the shared cost pool",
    )
    is_labour: bool = Field(
        False,
        validation_alias=AliasChoices("is_labour", "isLabour"),
        serialization_alias="isLabour",
    )
    kind: Optional[LineItemKind] = Field(
        None,
        description="Explicit materials/labour tag; legacy items are classified on read",
    )

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @field_validator("cost", mode="before")
    @classmethod
    def lenient_cost(cls, v):
        return to_decimal(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def lenient_quantity(cls, v):
        return to_decimal(v)

    @field_validator("markup", mode="before")
    @classmethod
    def lenient_markup(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return to_decimal(v)

    @field_validator("category", mode="before")
    @classmethod
    def unknown_category_is_other(cls, v):
        if v is None or v == "":
            return ItemCategory.OTHER
        if isinstance(v, str) and v.lower() not in {c.value for c in ItemCategory}:
            return ItemCategory.OTHER
        return v.lower() if isinstance(v, str) else v


class HiddenCost(BaseModel):
    """A shared cost (delivery, waste disposal...) spread over visible items."""

    id: Optional[str] = None
    name: str = Field("", max_length=255)
    amount: Decimal = Field(Decimal("0"))

    model_config = ConfigDict(from_attributes=True)

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v):
        return to_decimal(v)


class ItemTotal(QuoteItem):
    """A visible quote item with its computed pricing."""

    base_cost: Decimal = Field(..., serialization_alias="baseCost")
    hidden_cost_share: Decimal = Field(..., serialization_alias="hiddenCostShare")
    cost_with_hidden: Decimal = Field(..., serialization_alias="costWithHidden")
    markup_percentage: Decimal = Field(..., serialization_alias="markupPercentage")
    markup_amount: Decimal = Field(..., serialization_alias="markupAmount")
    final_total: Decimal = Field(..., serialization_alias="finalTotal")
    unit_price: Decimal = Field(..., serialization_alias="unitPrice")


class QuoteCalculation(BaseModel):
    """Full pricing breakdown of a quote."""

    visible_items: list[QuoteItem] = Field(default_factory=list, serialization_alias="visibleItems")
    hidden_items: list[QuoteItem] = Field(default_factory=list, serialization_alias="hiddenItems")
    visible_items_count: int = Field(0, serialization_alias="visibleItemsCount")
    visible_base_cost: Decimal = Field(Decimal("0"), serialization_alias="visibleBaseCost")
    hidden_items_cost: Decimal = Field(Decimal("0"), serialization_alias="hiddenItemsCost")
    manual_hidden_costs: Decimal = Field(Decimal("0"), serialization_alias="manualHiddenCosts")
    total_hidden_cost: Decimal = Field(Decimal("0"), serialization_alias="totalHiddenCost")
    total_markup: Decimal = Field(Decimal("0"), serialization_alias="totalMarkup")
    visible_total: Decimal = Field(Decimal("0"), serialization_alias="visibleTotal")
    vat_enabled: bool = Field(False, serialization_alias="vatEnabled")
    vat_rate: Decimal = Field(Decimal("0"), serialization_alias="vatRate")
    vat_amount: Decimal = Field(Decimal("0"), serialization_alias="vatAmount")
    grand_total: Decimal = Field(Decimal("0"), serialization_alias="grandTotal")
    profit_percentage: Decimal = Field(Decimal("0"), serialization_alias="profitPercentage")
    item_totals: list[ItemTotal] = Field(default_factory=list, serialization_alias="itemTotals")
    distribution_method: DistributionMethod = Field(
        DistributionMethod.EVEN, serialization_alias="distributionMethod"
    )


class QuoteCalculationRequest(BaseModel):
    """Stateless pricing preview, sent while a quote is being edited."""

    selected_items: list[QuoteItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selected_items", "selectedItems"),
    )
    hidden_costs: list[HiddenCost] = Field(
        default_factory=list,
        validation_alias=AliasChoices("hidden_costs", "hiddenCosts"),
    )
    global_markup: Optional[Decimal] = Field(
        None, ge=0, validation_alias=AliasChoices("global_markup", "globalMarkup")
    )
    distribution_method: Optional[DistributionMethod] = Field(
        None, validation_alias=AliasChoices("distribution_method", "distributionMethod")
    )
    vat_enabled: Optional[bool] = Field(
        None, validation_alias=AliasChoices("vat_enabled", "vatEnabled")
    )
    vat_rate: Optional[Decimal] = Field(
        None, ge=0, le=100, validation_alias=AliasChoices("vat_rate", "vatRate")
    )


# -------------------------------------------------------------------
# Payment schedule
# -------------------------------------------------------------------

class PaymentStage(BaseModel):
    """One staged payment derived from a quote total and its terms."""

    stage: str = Field(..., description="Machine key: deposit, interim, final, full, custom")
    description: str
    percentage: Decimal = Field(..., description="Fraction of the quote total")
    amount: Decimal
    due_when: str = Field(..., serialization_alias="dueWhen")
    status: Optional[StageStatus] = None
    invoice_ids: list[uuid.UUID] = Field(default_factory=list, serialization_alias="invoiceIds")


# -------------------------------------------------------------------
# Quote CRUD
# -------------------------------------------------------------------

class ClientDetails(BaseModel):
    """Client snapshot stored on quotes and invoices."""

    name: str = Field("", max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class QuoteBase(BaseModel):
    """Fields shared by quote create/read."""

    contact_id: Optional[uuid.UUID] = Field(None, serialization_alias="contactId")
    client: ClientDetails = Field(default_factory=ClientDetails)
    selected_items: list[QuoteItem] = Field(default_factory=list, serialization_alias="selectedItems")
    hidden_costs: list[HiddenCost] = Field(default_factory=list, serialization_alias="hiddenCosts")
    global_markup: Decimal = Field(Decimal("20"), ge=0, serialization_alias="globalMarkup")
    distribution_method: DistributionMethod = Field(
        DistributionMethod.EVEN, serialization_alias="distributionMethod"
    )
    payment_terms: Optional[str] = Field("1", max_length=20, serialization_alias="paymentTerms")
    custom_terms: Optional[str] = Field(None, serialization_alias="customTerms")
    vat_enabled: bool = Field(False, serialization_alias="vatEnabled")
    vat_rate: Decimal = Field(Decimal("20"), ge=0, le=100, serialization_alias="vatRate")
    exclusions: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    valid_until: Optional[date] = Field(None, serialization_alias="validUntil")

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class QuoteCreate(QuoteBase):
    """Payload for creating a quote. Totals are computed by the service."""
    pass


class QuoteUpdate(BaseModel):
    """Partial update of a quote."""

    model_config = ConfigDict(use_enum_values=True)

    contact_id: Optional[uuid.UUID] = None
    client: Optional[ClientDetails] = None
    selected_items: Optional[list[QuoteItem]] = None
    hidden_costs: Optional[list[HiddenCost]] = None
    global_markup: Optional[Decimal] = Field(None, ge=0)
    distribution_method: Optional[DistributionMethod] = None
    payment_terms: Optional[str] = Field(None, max_length=20)
    custom_terms: Optional[str] = None
    vat_enabled: Optional[bool] = None
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    exclusions: Optional[list[str]] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    status: Optional[QuoteStatus] = None


class QuoteRead(QuoteBase):
    """Quote as returned by the API."""

    id: uuid.UUID
    quote_number: str = Field(..., serialization_alias="quoteNumber")
    status: QuoteStatus
    grand_total: Decimal = Field(..., serialization_alias="grandTotal")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime = Field(..., serialization_alias="updatedAt")


class QuoteList(BaseModel):
    """Paginated list of quotes."""

    items: list[QuoteRead] = Field(default_factory=list)
    total: int = Field(..., serialization_alias="totalItems")
    page: int = Field(..., serialization_alias="currentPage")
    per_page: int = Field(..., serialization_alias="itemsPerPage")
