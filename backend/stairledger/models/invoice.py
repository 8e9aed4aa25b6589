"""
SQLAlchemy models for Invoicing
Project: Stair Ledger

Contains:
- Invoice: invoice with its line items and CIS bookkeeping
- CISRecord: one CIS deduction, kept for tax year reporting
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stairledger.models import Base
from stairledger.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from stairledger.models.quote import Quote


class Invoice(Base, UUIDMixin, TimestampMixin):
    """
    An invoice, optionally raised from one payment stage of a quote.

    CIS columns:
        cis_applied: withholding currently applied
        cis_deduction: amount withheld (0 when not applied)
        labor_total: labour the deduction was computed on
        original_gross_amount: amount before the deduction
        original_line_items_before_cis: lines restored on undo
        cis_record_id: the CIS record created with the deduction

    While CIS is applied, amount == original_gross_amount - cis_deduction.
    """

    __tablename__ = "invoices"

    # ------------------------------------------------------------
    # Identification
    # ------------------------------------------------------------
    invoice_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    quote_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("quotes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    payment_stage_id: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        doc="Stage key of the quote's payment schedule (deposit, interim, final, full, custom)",
    )
    contact_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
    )
    client: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # ------------------------------------------------------------
    # Dates and status
    # ------------------------------------------------------------
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # ------------------------------------------------------------
    # Amounts
    # ------------------------------------------------------------
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    line_items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    vat_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    vat_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("20"))
    vat_included: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # ------------------------------------------------------------
    # CIS
    # ------------------------------------------------------------
    cis_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cis_deduction: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False, default=Decimal("0"))
    labor_total: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    original_gross_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 4), nullable=True)
    original_line_items_before_cis: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    cis_record_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    quote: Mapped[Optional["Quote"]] = relationship(
        "Quote",
        back_populates="invoices",
        lazy="selectin",
    )

    # ------------------------------------------------------------
    # Computed properties
    # ------------------------------------------------------------
    @property
    def is_overdue(self) -> bool:
        """True when the due date has passed and the invoice is unpaid."""
        return (
            self.status != "paid"
            and self.due_date is not None
            and self.due_date < date.today()
        )

    __table_args__ = (
        Index("ix_invoices_invoice_date", "invoice_date"),
        Index("ix_invoices_due_date", "due_date"),
        Index("ix_invoices_status", "status"),
        CheckConstraint("amount >= 0", name="ck_invoices_amount_positive"),
        CheckConstraint("cis_deduction >= 0", name="ck_invoices_cis_deduction_positive"),
        CheckConstraint("vat_rate >= 0 AND vat_rate <= 100", name="ck_invoices_vat_rate_range"),
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number={self.invoice_number}, amount={self.amount})>"


class CISRecord(Base, UUIDMixin, TimestampMixin):
    """
    A CIS deduction, the basis of the yearly CIS return.

    Created together with the deduction on the invoice and deleted with
    its undo.
    """

    __tablename__ = "cis_records"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
    )
    invoice_number: Mapped[str] = mapped_column(String(30), nullable=False, default="Unknown")
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    labor_amount: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False, default=Decimal("0"))
    cis_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False, default=Decimal("0.20"))
    cis_deduction: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    deduction_date: Mapped[date] = mapped_column(Date, nullable=False)
    tax_year: Mapped[str] = mapped_column(String(9), nullable=False, doc="e.g. 2024-2025")

    __table_args__ = (
        Index("ix_cis_records_tax_year", "tax_year"),
        CheckConstraint("cis_deduction >= 0", name="ck_cis_records_deduction_positive"),
        UniqueConstraint("invoice_id", name="uq_cis_records_invoice_id"),
    )

    def __repr__(self) -> str:
        return f"<CISRecord(id={self.id}, invoice={self.invoice_number}, deduction={self.cis_deduction})>"
