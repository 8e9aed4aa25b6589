"""
SQLAlchemy model for Contact
Project: Stair Ledger

Customers that quotes and invoices are addressed to.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stairledger.models import Base
from stairledger.models.mixins import SoftDeleteMixin, TimestampMixin, UUIDMixin


class Contact(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    A customer.

    Quotes and invoices keep their own snapshot of the client details, so
    editing a contact never rewrites documents already issued.
    """

    __tablename__ = "contacts"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_contacts_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, name={self.name})>"
