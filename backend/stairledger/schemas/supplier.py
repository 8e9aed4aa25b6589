"""
Pydantic schemas for Suppliers and catalogue items
Project: Stair Ledger
"""

import datetime
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from stairledger.schemas.common import ItemCategory
from stairledger.schemas.contact import normalize_phone


# -------------------------------------------------------------------
# Supplier
# -------------------------------------------------------------------

class SupplierBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str = Field(..., min_length=1, max_length=255)
    contact_name: Optional[str] = Field(None, max_length=255, serialization_alias="contactName")
    email: Optional[EmailStr] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    notes: Optional[str] = None

    _normalize_phone = field_validator("phone", mode="before")(normalize_phone)


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    notes: Optional[str] = None

    _normalize_phone = field_validator("phone", mode="before")(normalize_phone)


class SupplierRead(SupplierBase):
    id: uuid.UUID
    is_active: bool = Field(True, serialization_alias="isActive")
    created_at: datetime.datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime.datetime = Field(..., serialization_alias="updatedAt")


class SupplierList(BaseModel):
    """Paginated list of suppliers."""

    items: list[SupplierRead] = Field(default_factory=list)
    total: int = Field(..., serialization_alias="totalItems")
    page: int = Field(..., serialization_alias="currentPage")
    per_page: int = Field(..., serialization_alias="itemsPerPage")


# -------------------------------------------------------------------
# Catalogue items
# -------------------------------------------------------------------

class CatalogItemBase(BaseModel):
    """
    A supplier's priced item.

    Configuration:
    - use_enum_values=True: the ORM receives the category as a string
    """

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: ItemCategory = Field(ItemCategory.OTHER)
    cost: Decimal = Field(Decimal("0"), ge=0, description="Unit cost")
    unit: Optional[str] = Field(None, max_length=20, description="e.g. each, m, m2, hour")


class CatalogItemCreate(CatalogItemBase):
    pass


class CatalogItemUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[ItemCategory] = None
    cost: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=20)


class CatalogItemRead(CatalogItemBase):
    id: uuid.UUID
    supplier_id: uuid.UUID = Field(..., serialization_alias="supplierId")
    is_active: bool = Field(True, serialization_alias="isActive")
    created_at: datetime.datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime.datetime = Field(..., serialization_alias="updatedAt")


class CatalogItemList(BaseModel):
    """Paginated list of catalogue items."""

    items: list[CatalogItemRead] = Field(default_factory=list)
    total: int = Field(..., serialization_alias="totalItems")
    page: int = Field(..., serialization_alias="currentPage")
    per_page: int = Field(..., serialization_alias="itemsPerPage")
