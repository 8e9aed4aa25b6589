"""
SQLAlchemy model for Quote
Project: Stair Ledger
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stairledger.models import Base
from stairledger.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from stairledger.models.contact import Contact
    from stairledger.models.invoice import Invoice


class Quote(Base, UUIDMixin, TimestampMixin):
    """
    A priced quote.

    Line items and hidden costs are stored as JSON documents in the shape
    produced by the quote builder. `grand_total` is a cache refreshed by
    the quote service on every write.
    """

    __tablename__ = "quotes"

    quote_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    contact_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # ------------------------------------------------------------
    # Client snapshot
    # ------------------------------------------------------------
    client: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # ------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------
    selected_items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    hidden_costs: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    global_markup: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("20"))
    distribution_method: Mapped[str] = mapped_column(String(20), nullable=False, default="even")
    vat_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    vat_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("20"))
    grand_total: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)

    # ------------------------------------------------------------
    # Terms
    # ------------------------------------------------------------
    payment_terms: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, default="1")
    custom_terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    exclusions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    valid_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    contact: Mapped[Optional["Contact"]] = relationship("Contact", lazy="selectin")
    invoices: Mapped[List["Invoice"]] = relationship(
        "Invoice",
        back_populates="quote",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_quotes_status", "status"),
        CheckConstraint("global_markup >= 0", name="ck_quotes_markup_positive"),
        CheckConstraint("vat_rate >= 0 AND vat_rate <= 100", name="ck_quotes_vat_rate_range"),
    )

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, number={self.quote_number}, total={self.grand_total})>"
