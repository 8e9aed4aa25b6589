"""
Pytest configuration and fixtures.

The service tests run against a mocked AsyncSession and plain mock
records, so no database is needed.
"""

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession


# ============================================================
# AsyncSession mock
# ============================================================


@pytest.fixture
def mock_db():
    """AsyncSession mock: add is sync, everything touching the database is awaited."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = AsyncMock()
    db.begin_nested = MagicMock()
    return db


# ============================================================
# Quote mock
# ============================================================


class MockQuote:
    """Mock of the Quote model."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.quote_number = kwargs.get('quote_number', "Q-2025-0001")
        self.contact_id = kwargs.get('contact_id', None)
        self.client = kwargs.get('client', {"name": "Jane Carter", "company": "Carter Homes"})
        self.selected_items = kwargs.get('selected_items', [])
        self.hidden_costs = kwargs.get('hidden_costs', [])
        self.global_markup = kwargs.get('global_markup', Decimal("20"))
        self.distribution_method = kwargs.get('distribution_method', "even")
        self.vat_enabled = kwargs.get('vat_enabled', False)
        self.vat_rate = kwargs.get('vat_rate', Decimal("20"))
        self.grand_total = kwargs.get('grand_total', Decimal("1000"))
        self.payment_terms = kwargs.get('payment_terms', "2")
        self.status = kwargs.get('status', "accepted")
        self.invoices = kwargs.get('invoices', [])


@pytest.fixture
def mock_quote():
    """An accepted quote on deposit/interim/final terms, total 1000."""
    return MockQuote(
        selected_items=[
            {"name": "Oak treads", "cost": "400", "quantity": "1", "category": "timber"},
            {"name": "Installation", "cost": "300", "quantity": "1", "category": "labour"},
        ],
    )


# ============================================================
# Invoice mock
# ============================================================


class MockInvoice:
    """Mock of the Invoice model."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.invoice_number = kwargs.get('invoice_number', "INV-2025-0001")
        self.quote_id = kwargs.get('quote_id', None)
        self.quote = kwargs.get('quote', None)
        self.payment_stage_id = kwargs.get('payment_stage_id', None)
        self.client = kwargs.get('client', {"name": "Jane Carter", "company": "Carter Homes"})
        self.description = kwargs.get('description', "Staircase refurbishment")
        self.invoice_date = kwargs.get('invoice_date', date.today())
        self.due_date = kwargs.get('due_date', date.today() + timedelta(days=14))
        self.status = kwargs.get('status', "pending")
        self.paid_at = kwargs.get('paid_at', None)
        self.amount = kwargs.get('amount', Decimal("1000"))
        self.line_items = kwargs.get('line_items', [])
        self.vat_enabled = kwargs.get('vat_enabled', False)
        self.vat_rate = kwargs.get('vat_rate', Decimal("20"))
        self.vat_included = kwargs.get('vat_included', False)
        self.cis_applied = kwargs.get('cis_applied', False)
        self.cis_deduction = kwargs.get('cis_deduction', Decimal("0"))
        self.labor_total = kwargs.get('labor_total', None)
        self.original_gross_amount = kwargs.get('original_gross_amount', None)
        self.original_line_items_before_cis = kwargs.get('original_line_items_before_cis', None)
        self.cis_record_id = kwargs.get('cis_record_id', None)
        self.created_at = kwargs.get('created_at', datetime.now(timezone.utc))
        self.updated_at = kwargs.get('updated_at', datetime.now(timezone.utc))


@pytest.fixture
def mock_invoice():
    """A pending invoice of 1000 made entirely of labour."""
    return MockInvoice(
        line_items=[{"id": "1", "description": "Staircase fitting", "amount": "1000", "isLabour": True}],
    )


@pytest.fixture
def mock_materials_invoice():
    """A pending invoice with no labour at all."""
    return MockInvoice(
        line_items=[{"id": "1", "description": "Oak handrail", "amount": "1000", "kind": "materials"}],
    )


# ============================================================
# CIS record mock
# ============================================================


class MockCISRecord:
    """Mock of the CISRecord model."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.invoice_id = kwargs.get('invoice_id', uuid.uuid4())
        self.invoice_number = kwargs.get('invoice_number', "INV-2025-0001")
        self.client_name = kwargs.get('client_name', "Jane Carter")
        self.client_company = kwargs.get('client_company', "Carter Homes")
        self.labor_amount = kwargs.get('labor_amount', Decimal("1000"))
        self.cis_rate = kwargs.get('cis_rate', Decimal("0.20"))
        self.cis_deduction = kwargs.get('cis_deduction', Decimal("200"))
        self.deduction_date = kwargs.get('deduction_date', date(2025, 5, 1))
        self.tax_year = kwargs.get('tax_year', "2025-2026")
