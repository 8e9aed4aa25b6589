"""
SQLAlchemy models for Suppliers and their catalogue
Project: Stair Ledger

Contains:
- Supplier: timber yards, hardware and glass suppliers, subcontractors
- CatalogItem: priced items offered by a supplier
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stairledger.models import Base
from stairledger.models.mixins import SoftDeleteMixin, TimestampMixin, UUIDMixin


class Supplier(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A supplier of materials or labour."""

    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    items: Mapped[List["CatalogItem"]] = relationship(
        "CatalogItem",
        back_populates="supplier",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Supplier(id={self.id}, name={self.name})>"


class CatalogItem(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    A priced catalogue entry.

    Selecting an item into a quote copies its name, category and cost into
    the quote, so later price changes never alter an existing quote.
    """

    __tablename__ = "catalog_items"

    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("suppliers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="other",
        doc="timber, hardware, fixtures, glass, labour or other",
    )
    cost: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False, default=Decimal("0"))
    unit: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    supplier: Mapped["Supplier"] = relationship("Supplier", back_populates="items", lazy="selectin")

    __table_args__ = (
        Index("ix_catalog_items_name", "name"),
        CheckConstraint("cost >= 0", name="ck_catalog_items_cost_positive"),
    )

    def __repr__(self) -> str:
        return f"<CatalogItem(id={self.id}, name={self.name}, cost={self.cost})>"
