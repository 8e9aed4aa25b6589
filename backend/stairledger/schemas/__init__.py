"""
Pydantic schemas for Stair Ledger

Validation and serialization of API payloads, plus the value objects the
calculators work on.
"""

from stairledger.schemas.common import ItemCategory, LineItemKind
from stairledger.schemas.contact import ContactCreate, ContactList, ContactRead, ContactUpdate
from stairledger.schemas.supplier import (
    CatalogItemCreate,
    CatalogItemList,
    CatalogItemRead,
    CatalogItemUpdate,
    SupplierCreate,
    SupplierList,
    SupplierRead,
    SupplierUpdate,
)
from stairledger.schemas.quote import (
    ClientDetails,
    DistributionMethod,
    HiddenCost,
    ItemTotal,
    PaymentStage,
    PaymentTermsCode,
    QuoteCalculation,
    QuoteCalculationRequest,
    QuoteCreate,
    QuoteItem,
    QuoteList,
    QuoteRead,
    QuoteStatus,
    QuoteUpdate,
    StageStatus,
)
from stairledger.schemas.invoice import (
    CISCalculation,
    CISOperationResponse,
    CISOutcome,
    CreateInvoiceFromStage,
    InvoiceCreate,
    InvoiceDeletionResponse,
    InvoiceFinancials,
    InvoiceLineItem,
    InvoiceList,
    InvoiceRead,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceUpdate,
    NoticeSeverity,
    VatBreakdown,
)
from stairledger.schemas.cis_record import CISRecordList, CISRecordRead, CISTaxYearSummary
from stairledger.schemas.settings import CISIdentity, CompanyProfile

__all__ = [
    "ItemCategory",
    "LineItemKind",
    "ContactCreate",
    "ContactList",
    "ContactRead",
    "ContactUpdate",
    "CatalogItemCreate",
    "CatalogItemList",
    "CatalogItemRead",
    "CatalogItemUpdate",
    "SupplierCreate",
    "SupplierList",
    "SupplierRead",
    "SupplierUpdate",
    "ClientDetails",
    "DistributionMethod",
    "HiddenCost",
    "ItemTotal",
    "PaymentStage",
    "PaymentTermsCode",
    "QuoteCalculation",
    "QuoteCalculationRequest",
    "QuoteCreate",
    "QuoteItem",
    "QuoteList",
    "QuoteRead",
    "QuoteStatus",
    "QuoteUpdate",
    "StageStatus",
    "CISCalculation",
    "CISOperationResponse",
    "CISOutcome",
    "CreateInvoiceFromStage",
    "InvoiceCreate",
    "InvoiceDeletionResponse",
    "InvoiceFinancials",
    "InvoiceLineItem",
    "InvoiceList",
    "InvoiceRead",
    "InvoiceStatus",
    "InvoiceTotals",
    "InvoiceUpdate",
    "NoticeSeverity",
    "VatBreakdown",
    "CISRecordList",
    "CISRecordRead",
    "CISTaxYearSummary",
    "CISIdentity",
    "CompanyProfile",
]
