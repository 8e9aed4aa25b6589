"""
API tests for the routers and exception handlers.

The database dependency is overridden with a mock session and the
services with mocks, so only the HTTP layer is exercised.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from stairledger.api.v1.cis_records import get_cis_record_service
from stairledger.api.v1.invoices import get_invoice_service
from stairledger.core.config import Settings, get_settings
from stairledger.core.database import get_db
from stairledger.core.exceptions import BusinessValidationError, DuplicateError
from stairledger.main import app
from stairledger.schemas.invoice import InvoiceFinancials
from stairledger.services import cis_calculator

from conftest import MockInvoice


@pytest.fixture
def client(mock_db):
    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_cis_export_is_a_csv_attachment(client):
    service = MagicMock()
    service.export_csv = AsyncMock(return_value=("CIS_Deductions_2024-2025.csv", "Date\nTOTAL"))
    app.dependency_overrides[get_cis_record_service] = lambda: service

    response = client.get("/api/v1/cis-records/export", params={"tax_year": "2024-2025"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="CIS_Deductions_2024-2025.csv"'
    assert response.text == "Date\nTOTAL"


def test_cis_export_rejects_bad_tax_year(client):
    response = client.get("/api/v1/cis-records/export", params={"tax_year": "2024"})
    assert response.status_code == 422


def test_cis_rejection_carries_error_code(client):
    service = MagicMock()
    service.apply_cis = AsyncMock(side_effect=BusinessValidationError(
        "No labour items found", error_code=cis_calculator.CIS_NO_LABOUR,
    ))
    app.dependency_overrides[get_invoice_service] = lambda: service

    response = client.post(f"/api/v1/invoices/{MockInvoice().id}/cis/apply")

    assert response.status_code == 422
    assert response.json() == {"detail": "No labour items found", "error_code": "CIS_NO_LABOUR"}


def test_cis_apply_response(client):
    invoice = MockInvoice(
        invoice_number="INV-2025-0001",
        line_items=[{"description": "Fitting", "amount": "1000", "kind": "labour"}],
    )
    outcome = cis_calculator.apply_cis(
        InvoiceFinancials.model_validate(invoice), rate=Decimal("0.20")
    )
    service = MagicMock()
    service.apply_cis = AsyncMock(return_value=(invoice, outcome))
    app.dependency_overrides[get_invoice_service] = lambda: service

    response = client.post(f"/api/v1/invoices/{invoice.id}/cis/apply")

    body = response.json()
    assert response.status_code == 200
    assert body["changed"] is True
    assert body["code"] == "CIS_APPLIED"
    assert body["invoice"]["invoiceNumber"] == "INV-2025-0001"
    assert body["calculation"]["cisDeduction"] == "200.00"


def test_second_cis_record_is_a_409(client):
    service = MagicMock()
    service.apply_cis = AsyncMock(side_effect=DuplicateError(
        "Invoice INV-2025-0001 already has a CIS record: no changes were saved",
    ))
    app.dependency_overrides[get_invoice_service] = lambda: service

    response = client.post(f"/api/v1/invoices/{MockInvoice().id}/cis/apply")

    assert response.status_code == 409
    assert response.json()["error_code"] == "DUPLICATE_RESOURCE"


def test_company_profile(client):
    app.dependency_overrides[get_settings] = lambda: Settings(
        _env_file=None,
        company_name="Oakline Stairs",
        company_email="office@oakline.example",
        vat_enabled=True,
        vat_number="GB123456789",
        cis_utr="12345 67890",
    )

    response = client.get("/api/v1/company/")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Oakline Stairs"
    assert body["email"] == "office@oakline.example"
    assert body["vatEnabled"] is True
    assert body["vatNumber"] == "GB123456789"
    assert body["cis"]["companyName"] == "Oakline Stairs"
    assert body["cis"]["utr"] == "1234567890"
    assert body["cis"]["niNumber"] is None
    assert Decimal(body["cis"]["defaultRate"]) == Decimal("0.20")


def test_company_profile_without_utr(client):
    app.dependency_overrides[get_settings] = lambda: Settings(
        _env_file=None, company_name="Oakline Stairs", cis_company_name="Oakline Stairs Ltd",
    )

    body = client.get("/api/v1/company/").json()

    assert body["cis"]["companyName"] == "Oakline Stairs Ltd"
    assert body["cis"]["utr"] is None
    assert body["vatNumber"] is None
