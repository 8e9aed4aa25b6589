"""
Service layer for Invoicing
Project: Stair Ledger

Business logic for invoices:
- Manual invoices and invoices raised from a quote payment stage
- Payment status
- CIS withholding (apply/undo) together with its CIS record
- Invoice totals with the VAT/CIS ordering rule
"""

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.config import settings
from stairledger.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    DuplicateError,
    NotFoundError,
)
from stairledger.models import CISRecord, Invoice
from stairledger.schemas.common import LineItemKind
from stairledger.schemas.invoice import (
    CISOutcome,
    CreateInvoiceFromStage,
    InvoiceCreate,
    InvoiceDeletionResponse,
    InvoiceFinancials,
    InvoiceLineItem,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceUpdate,
)
from stairledger.schemas.quote import QuoteItem
from stairledger.services import cis_calculator
from stairledger.services.calculations import CalculationConfig, calculate_invoice_totals
from stairledger.services.cis_tracker import tax_year_for
from stairledger.services.numbering import next_document_number
from stairledger.services.payment_schedule import (
    calculate_payment_schedule,
    invoice_matches_stage,
)
from stairledger.services.quote_service import QuoteService

logger = logging.getLogger(__name__)

# Guard outcomes that are rejections rather than harmless no-ops
CIS_REJECTIONS = (cis_calculator.CIS_NON_POSITIVE_GROSS, cis_calculator.CIS_NO_LABOUR)


def _lines_to_json(lines: Optional[list[InvoiceLineItem]]) -> Optional[list[dict]]:
    if lines is None:
        return None
    return [line.model_dump(mode="json", by_alias=True, exclude_none=True) for line in lines]


class InvoiceService:
    """
    Operations on invoices.

    Unlike the plain CRUD services, these methods commit: a CIS
    application changes the invoice and the CIS records together and
    must land as one transaction.
    """

    def __init__(self, quote_service: Optional[QuoteService] = None) -> None:
        self.quote_service = quote_service or QuoteService()

    # ----------------------------------------------------------------
    # Queries
    # ----------------------------------------------------------------

    async def get_all(
        self,
        db: AsyncSession,
        quote_id: Optional[uuid.UUID] = None,
        status_filter: Optional[str] = None,
        overdue_only: bool = False,
        page: int = 1,
        per_page: int = 10,
    ) -> tuple[list[Invoice], int]:
        """
        Paginated invoices, newest first.

        Overdue is not stored: it is filtered on unpaid invoices whose due
        date has passed.
        """
        conditions = []
        if quote_id:
            conditions.append(Invoice.quote_id == quote_id)
        if status_filter:
            conditions.append(Invoice.status == status_filter)
        if overdue_only:
            conditions.append(Invoice.status != InvoiceStatus.PAID.value)
            conditions.append(Invoice.due_date < date.today())

        stmt = select(Invoice).order_by(Invoice.invoice_date.desc(), Invoice.invoice_number.desc())
        count_stmt = select(func.count(Invoice.id))
        if conditions:
            stmt = stmt.where(and_(*conditions))
            count_stmt = count_stmt.where(and_(*conditions))

        count_result = await db.execute(count_stmt)
        total = count_result.scalar() or 0

        result = await db.execute(stmt.offset((page - 1) * per_page).limit(per_page))
        invoices = list(result.scalars().all())
        return invoices, total

    async def get_by_id(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
        for_update: bool = False,
    ) -> Invoice:
        """
        Fetches an invoice.

        With for_update the row stays locked until the transaction ends, so
        two CIS applications on the same invoice run one after the other.
        """
        query = select(Invoice).where(Invoice.id == invoice_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def totals(self, invoice: Invoice) -> InvoiceTotals:
        """Foot-of-invoice figures: VAT on the gross, CIS deducted after VAT."""
        config = CalculationConfig.from_settings(
            settings,
            vat_enabled=invoice.vat_enabled,
            vat_rate=invoice.vat_rate,
            vat_included=invoice.vat_included,
        )
        return calculate_invoice_totals(InvoiceFinancials.model_validate(invoice), config)

    # ----------------------------------------------------------------
    # Creation
    # ----------------------------------------------------------------

    async def create(self, db: AsyncSession, data: InvoiceCreate) -> Invoice:
        """
        Creates a manual invoice.

        The due date defaults to the invoice date plus the configured
        payment terms.
        """
        invoice = Invoice(
            quote_id=data.quote_id,
            payment_stage_id=data.payment_stage_id,
            contact_id=data.contact_id,
            client=data.client.model_dump(mode="json"),
            description=data.description,
            invoice_date=data.invoice_date,
            due_date=data.due_date or self._default_due_date(data.invoice_date),
            status=InvoiceStatus.PENDING.value,
            amount=data.amount,
            line_items=_lines_to_json(data.line_items),
            vat_enabled=data.vat_enabled,
            vat_rate=data.vat_rate,
            vat_included=data.vat_included,
            notes=data.notes,
        )
        return await self._insert(db, invoice)

    async def create_from_stage(
        self,
        db: AsyncSession,
        quote_id: uuid.UUID,
        stage_key: str,
        data: CreateInvoiceFromStage,
    ) -> Invoice:
        """
        Raises the invoice for one payment stage of a quote.

        Steps:
        1. Load the quote and compute its payment schedule
        2. Find the requested stage
        3. Refuse when the stage already has an invoice
        4. Create the invoice with the stage amount, stamped with the stage key

        The single stage line is tagged as materials: labour for CIS is read
        from the quote itself, so it is never counted twice.
        """
        quote = await self.quote_service.get_by_id(db, quote_id, for_update=True)
        schedule = calculate_payment_schedule(quote, self.quote_service.base_config())

        stage = next((s for s in schedule if s.stage == stage_key), None)
        if stage is None:
            raise NotFoundError(
                f"Quote {quote.quote_number} has no '{stage_key}' payment stage"
            )

        existing = [inv for inv in quote.invoices if invoice_matches_stage(inv, stage_key)]
        if existing:
            logger.warning(
                "Stage %s of quote %s already invoiced by %s",
                stage_key, quote.quote_number, existing[0].invoice_number,
            )
            raise ConflictError(
                f"The {stage_key} stage of quote {quote.quote_number} is already invoiced "
                f"({existing[0].invoice_number})"
            )

        invoice_date = data.invoice_date or date.today()
        line = InvoiceLineItem(
            id=f"stage-{stage.stage}",
            description=stage.description,
            amount=stage.amount,
            quantity=Decimal("1"),
            kind=LineItemKind.MATERIALS,
        )
        invoice = Invoice(
            quote_id=quote.id,
            payment_stage_id=stage.stage,
            contact_id=quote.contact_id,
            client=dict(quote.client or {}),
            description=f"{stage.description} - Quote {quote.quote_number}",
            invoice_date=invoice_date,
            due_date=data.due_date or self._default_due_date(invoice_date),
            status=InvoiceStatus.PENDING.value,
            amount=stage.amount,
            line_items=_lines_to_json([line]),
            # The quote total already carries its VAT
            vat_enabled=quote.vat_enabled,
            vat_rate=quote.vat_rate,
            vat_included=quote.vat_enabled,
            notes=data.notes,
        )
        return await self._insert(db, invoice)

    # ----------------------------------------------------------------
    # Updates
    # ----------------------------------------------------------------

    async def update(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
        data: InvoiceUpdate,
    ) -> Invoice:
        """
        Updates an invoice.

        Raises:
            BusinessValidationError: Amount or lines changed while CIS is applied
        """
        invoice = await self.get_by_id(db, invoice_id)
        update_data = data.model_dump(exclude_unset=True)

        if invoice.cis_applied and ({"amount", "line_items"} & update_data.keys()):
            raise BusinessValidationError(
                "Undo CIS before changing the amount or line items of this invoice",
                error_code="CIS_APPLIED_LOCKED",
            )

        if "client" in update_data and data.client is not None:
            update_data["client"] = data.client.model_dump(mode="json")
        if "line_items" in update_data:
            update_data["line_items"] = _lines_to_json(data.line_items) or []

        for field, value in update_data.items():
            setattr(invoice, field, value)

        if invoice.due_date is not None and invoice.due_date < invoice.invoice_date:
            raise BusinessValidationError("Due date cannot be before the invoice date")

        await self._commit(db, invoice, "updating")
        logger.info("Updated invoice %s", invoice.invoice_number)
        return invoice

    async def mark_paid(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
        paid_at: Optional[datetime] = None,
    ) -> Invoice:
        """Marks an invoice paid. Already paid invoices are left untouched."""
        invoice = await self.get_by_id(db, invoice_id)
        if invoice.status == InvoiceStatus.PAID.value:
            logger.info("Invoice %s already paid", invoice.invoice_number)
            return invoice

        invoice.status = InvoiceStatus.PAID.value
        invoice.paid_at = paid_at or datetime.now(timezone.utc)
        await self._commit(db, invoice, "marking paid")
        logger.info("Invoice %s marked paid", invoice.invoice_number)
        return invoice

    async def delete(self, db: AsyncSession, invoice_id: uuid.UUID) -> InvoiceDeletionResponse:
        """
        Deletes an invoice.

        Removing the linked CIS record is best-effort: a failure is logged
        and reported as a warning, and the invoice is deleted anyway.
        """
        invoice = await self.get_by_id(db, invoice_id)
        warnings: list[str] = []

        if invoice.cis_record_id is not None:
            try:
                async with db.begin_nested():
                    await db.execute(delete(CISRecord).where(CISRecord.id == invoice.cis_record_id))
            except SQLAlchemyError as e:
                logger.warning(
                    "Could not remove CIS record %s of invoice %s: %s",
                    invoice.cis_record_id, invoice.invoice_number, e,
                )
                warnings.append(
                    f"The CIS record of invoice {invoice.invoice_number} could not be removed"
                )

        try:
            await db.delete(invoice)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting invoice: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while deleting the invoice")

        logger.info("Deleted invoice %s", invoice.invoice_number)
        return InvoiceDeletionResponse(deleted=True, warnings=warnings)

    # ----------------------------------------------------------------
    # CIS
    # ----------------------------------------------------------------

    async def apply_cis(self, db: AsyncSession, invoice_id: uuid.UUID) -> tuple[Invoice, CISOutcome]:
        """
        Applies CIS withholding and records the deduction.

        The invoice update and the CIS record insert are committed
        together; on failure both are rolled back.

        Raises:
            BusinessValidationError: Non-positive gross or no labour
                (error_code CIS_NON_POSITIVE_GROSS / CIS_NO_LABOUR)
            ConflictError: The transaction failed
        """
        invoice = await self.get_by_id(db, invoice_id, for_update=True)
        state = InvoiceFinancials.model_validate(invoice)
        self._check_cis_state(invoice, state)
        quote_items = self._quote_items(invoice)
        rate = CalculationConfig.from_settings(settings).cis_rate

        outcome = cis_calculator.apply_cis(state, quote_items, rate)

        if outcome.code in CIS_REJECTIONS:
            logger.warning("CIS not applied to %s: %s", invoice.invoice_number, outcome.notice)
            raise BusinessValidationError(outcome.notice, error_code=outcome.code)
        if not outcome.changed:
            return invoice, outcome

        new_state = outcome.state
        record = CISRecord(
            id=uuid.uuid4(),
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number or "Unknown",
            client_name=(invoice.client or {}).get("name") or "Unknown",
            client_company=(invoice.client or {}).get("company") or "",
            labor_amount=new_state.labor_total,
            cis_rate=rate,
            cis_deduction=new_state.cis_deduction,
            deduction_date=date.today(),
            tax_year=tax_year_for(date.today()),
        )
        new_state = new_state.model_copy(update={"cis_record_id": record.id})
        self._write_state(invoice, new_state)

        try:
            db.add(record)
            await db.commit()
            await db.refresh(invoice)
        except IntegrityError as e:
            logger.error("CIS record clash for %s: %s", invoice.invoice_number, e.orig)
            await db.rollback()
            raise DuplicateError(
                f"Invoice {invoice.invoice_number} already has a CIS record: no changes were saved"
            )
        except SQLAlchemyError as e:
            logger.error(
                "CIS apply failed for %s, rolled back: %s - %s",
                invoice.invoice_number, e.__class__.__name__, e,
            )
            await db.rollback()
            raise ConflictError("Could not apply CIS: no changes were saved")

        logger.info(
            "CIS applied to %s: labour %s, deduction %s",
            invoice.invoice_number, new_state.labor_total, new_state.cis_deduction,
        )
        return invoice, outcome.model_copy(update={"state": new_state})

    async def undo_cis(self, db: AsyncSession, invoice_id: uuid.UUID) -> tuple[Invoice, CISOutcome]:
        """
        Reverts CIS withholding and removes its CIS record, in one transaction.

        Raises:
            ConflictError: The transaction failed
        """
        invoice = await self.get_by_id(db, invoice_id, for_update=True)
        record_id = invoice.cis_record_id
        state = InvoiceFinancials.model_validate(invoice)
        self._check_cis_state(invoice, state)
        outcome = cis_calculator.undo_cis(state)
        if not outcome.changed:
            return invoice, outcome

        self._write_state(invoice, outcome.state)

        try:
            if record_id is not None:
                await db.execute(delete(CISRecord).where(CISRecord.id == record_id))
            else:
                logger.warning("Invoice %s had CIS applied without a CIS record", invoice.invoice_number)
            await db.commit()
            await db.refresh(invoice)
        except SQLAlchemyError as e:
            logger.error(
                "CIS undo failed for %s, rolled back: %s - %s",
                invoice.invoice_number, e.__class__.__name__, e,
            )
            await db.rollback()
            raise ConflictError("Could not undo CIS: no changes were saved")

        logger.info("CIS undone on %s", invoice.invoice_number)
        return invoice, outcome

    # ----------------------------------------------------------------
    # Private helpers
    # ----------------------------------------------------------------

    def _default_due_date(self, invoice_date: date) -> date:
        return invoice_date + timedelta(days=settings.invoice_payment_terms_days)

    def _quote_items(self, invoice: Invoice) -> list[QuoteItem]:
        quote = invoice.quote
        if quote is None:
            return []
        return [QuoteItem.model_validate(item) for item in (quote.selected_items or [])]

    def _check_cis_state(self, invoice: Invoice, state: InvoiceFinancials) -> None:
        for problem in cis_calculator.cis_invariant_violations(state):
            logger.warning("Invoice %s has inconsistent CIS fields: %s", invoice.invoice_number, problem)

    def _write_state(self, invoice: Invoice, state: InvoiceFinancials) -> None:
        invoice.amount = state.amount
        invoice.line_items = _lines_to_json(state.line_items)
        invoice.cis_applied = state.cis_applied
        invoice.cis_deduction = state.cis_deduction
        invoice.labor_total = state.labor_total
        invoice.original_gross_amount = state.original_gross_amount
        invoice.original_line_items_before_cis = _lines_to_json(state.original_line_items_before_cis)
        invoice.cis_record_id = state.cis_record_id

    async def _insert(self, db: AsyncSession, invoice: Invoice) -> Invoice:
        invoice.invoice_number = await next_document_number(
            db, Invoice.invoice_number, settings.invoice_number_prefix, invoice.invoice_date.year
        )
        try:
            db.add(invoice)
            await db.commit()
            await db.refresh(invoice)
        except IntegrityError as e:
            await db.rollback()
            logger.error("Integrity error creating invoice: %s", e.orig)
            raise DuplicateError("An invoice with this number already exists")
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating invoice: %s - %s", e.__class__.__name__, e)
            raise ConflictError("Database error while creating the invoice")

        logger.info(
            "Created invoice %s for %s (amount %s, stage %s)",
            invoice.invoice_number, (invoice.client or {}).get("name"),
            invoice.amount, invoice.payment_stage_id,
        )
        return invoice

    async def _commit(self, db: AsyncSession, invoice: Invoice, action: str) -> None:
        try:
            await db.commit()
            await db.refresh(invoice)
        except SQLAlchemyError as e:
            logger.error("Database error %s invoice: %s - %s", action, e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError(f"Database error while {action} the invoice")
