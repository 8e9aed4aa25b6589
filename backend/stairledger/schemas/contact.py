"""
Pydantic schemas for Contact
Project: Stair Ledger
"""

import datetime
import re
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Strips spaces from a UK phone number.

    Accepts digits with an optional leading +.
    """
    if phone is None:
        return None
    normalized = phone.strip().replace(" ", "")
    if not normalized:
        return None
    if not re.match(r"^\+?\d+$", normalized):
        raise ValueError("Invalid phone number")
    return normalized


class ContactBase(BaseModel):
    """Fields shared by contact create and read."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(..., min_length=1, max_length=255, description="Contact name")
    company: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    notes: Optional[str] = None

    _normalize_phone = field_validator("phone", mode="before")(normalize_phone)


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    """Partial update: only the fields sent are changed."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    notes: Optional[str] = None

    _normalize_phone = field_validator("phone", mode="before")(normalize_phone)


class ContactRead(ContactBase):
    id: uuid.UUID
    is_active: bool = Field(True, serialization_alias="isActive")
    created_at: datetime.datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime.datetime = Field(..., serialization_alias="updatedAt")


class ContactList(BaseModel):
    """Paginated list of contacts."""

    items: list[ContactRead] = Field(default_factory=list)
    total: int = Field(..., serialization_alias="totalItems")
    page: int = Field(..., serialization_alias="currentPage")
    per_page: int = Field(..., serialization_alias="itemsPerPage")
