"""
Unit tests for ContactService and SupplierService.
"""

import uuid
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from stairledger.core.exceptions import ConflictError
from stairledger.schemas.contact import ContactCreate, ContactUpdate
from stairledger.schemas.supplier import CatalogItemCreate
from stairledger.services.contact_service import ContactService
from stairledger.services.supplier_service import SupplierService


# ============================================================
# Contacts
# ============================================================


class TestContactSchemas:
    """Tests for contact input normalisation."""

    def test_phone_spaces_removed(self):
        contact = ContactCreate(name="Jane Carter", phone="07700 900 123")
        assert contact.phone == "07700900123"

    def test_blank_phone_is_none(self):
        assert ContactUpdate(phone="  ").phone is None

    def test_invalid_phone(self):
        with pytest.raises(ValidationError):
            ContactCreate(name="Jane Carter", phone="call me")

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            ContactCreate(name="Jane Carter", email="not-an-email")


class TestContactService:
    """Tests for contact writes."""

    @pytest.mark.asyncio
    async def test_create_flushes_without_commit(self, mock_db):
        contact = await ContactService().create(mock_db, ContactCreate(name="Jane Carter"))
        assert contact.name == "Jane Carter"
        mock_db.flush.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_failure_rolls_back(self, mock_db):
        mock_db.flush.side_effect = SQLAlchemyError("boom")
        with pytest.raises(ConflictError):
            await ContactService().create(mock_db, ContactCreate(name="Jane Carter"))
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, mock_db):
        contact = SimpleNamespace(id=uuid.uuid4(), name="Jane Carter", is_active=True)
        service = ContactService()
        with patch.object(service, "get_by_id", AsyncMock(return_value=contact)):
            await service.delete(mock_db, contact.id)
        assert contact.is_active is False
        mock_db.delete.assert_not_awaited()


# ============================================================
# Suppliers and catalogue
# ============================================================


class TestSupplierService:
    """Tests for suppliers and their catalogue."""

    @pytest.mark.asyncio
    async def test_delete_deactivates_catalogue(self, mock_db):
        items = [SimpleNamespace(is_active=True), SimpleNamespace(is_active=True)]
        supplier = SimpleNamespace(id=uuid.uuid4(), is_active=True, items=items)
        service = SupplierService()
        with patch.object(service, "get_by_id", AsyncMock(return_value=supplier)):
            await service.delete(mock_db, supplier.id)
        assert supplier.is_active is False
        assert all(not item.is_active for item in items)

    @pytest.mark.asyncio
    async def test_create_item(self, mock_db):
        supplier_id = uuid.uuid4()
        service = SupplierService()
        data = CatalogItemCreate(name="Oak tread 900mm", category="timber", cost=Decimal("42.50"), unit="each")
        with patch.object(service, "get_by_id", AsyncMock(return_value=SimpleNamespace(id=supplier_id))):
            item = await service.create_item(mock_db, supplier_id, data)

        assert item.supplier_id == supplier_id
        assert item.category == "timber"
        assert item.cost == Decimal("42.50")
        mock_db.add.assert_called_once_with(item)

    def test_negative_cost_rejected(self):
        with pytest.raises(ValidationError):
            CatalogItemCreate(name="Spindle", cost=Decimal("-1"))
