"""
Service layer for Quotes
Project: Stair Ledger

Quote CRUD plus the pricing and payment schedule views. The cached
grand_total is recomputed on every write, so listings never need to
price quotes on the fly.
"""

import logging
import uuid
from datetime import date
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.config import settings
from stairledger.core.exceptions import ConflictError, DuplicateError, NotFoundError
from stairledger.models import Contact, Quote
from stairledger.schemas.quote import (
    ClientDetails,
    PaymentStage,
    QuoteCalculation,
    QuoteCalculationRequest,
    QuoteCreate,
    QuoteUpdate,
)
from stairledger.services.calculations import (
    CalculationConfig,
    calculate_quote_data,
    quote_config,
)
from stairledger.services.numbering import next_document_number
from stairledger.services.payment_schedule import (
    calculate_payment_schedule,
    correlate_stage_invoices,
)

logger = logging.getLogger(__name__)

# Fields stored as JSON documents in the quote builder's shape
JSON_FIELDS = ("client", "selected_items", "hidden_costs")


def _to_json(field: str, value: Any) -> Any:
    if field == "client":
        return value.model_dump(mode="json")
    return [entry.model_dump(mode="json", by_alias=True) for entry in value]


class QuoteService:
    """
    Operations on quotes.

    Writes flush but never commit: the router owns the transaction.
    """

    def base_config(self) -> CalculationConfig:
        return CalculationConfig.from_settings(settings)

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 10,
        status_filter: Optional[str] = None,
        contact_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Quote], int]:
        """Paginated quotes, newest first."""
        conditions = []
        if status_filter:
            conditions.append(Quote.status == status_filter)
        if contact_id:
            conditions.append(Quote.contact_id == contact_id)
        if search:
            conditions.append(or_(
                Quote.quote_number.ilike(f"%{search}%"),
                Quote.notes.ilike(f"%{search}%"),
            ))

        query = select(Quote).order_by(Quote.created_at.desc())
        if conditions:
            query = query.where(*conditions)
        query = query.offset((page - 1) * per_page).limit(per_page)
        result = await db.execute(query)
        quotes = list(result.scalars().all())

        count_query = select(func.count()).select_from(Quote)
        if conditions:
            count_query = count_query.where(*conditions)
        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        return quotes, total

    async def get_by_id(
        self,
        db: AsyncSession,
        quote_id: uuid.UUID,
        for_update: bool = False,
    ) -> Quote:
        query = select(Quote).where(Quote.id == quote_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        quote = result.scalar_one_or_none()
        if quote is None:
            logger.warning("Quote not found: %s", quote_id)
            raise NotFoundError(f"Quote {quote_id} not found")
        return quote

    async def create(self, db: AsyncSession, quote_data: QuoteCreate) -> Quote:
        """
        Creates a quote and caches its grand total.

        When the quote is linked to a contact and carries no client name,
        the client snapshot is filled from the contact.
        """
        values = quote_data.model_dump(exclude=set(JSON_FIELDS))
        client = await self._client_snapshot(db, quote_data.contact_id, quote_data.client)

        quote = Quote(
            **values,
            client=_to_json("client", client),
            selected_items=_to_json("selected_items", quote_data.selected_items),
            hidden_costs=_to_json("hidden_costs", quote_data.hidden_costs),
            status="draft",
        )
        quote.quote_number = await next_document_number(
            db, Quote.quote_number, settings.quote_number_prefix, date.today().year
        )
        quote.grand_total = self.price(quote).grand_total

        try:
            db.add(quote)
            await db.flush()
            await db.refresh(quote)
        except IntegrityError as e:
            logger.error("IntegrityError creating quote: %s - %s", e.__class__.__name__, e.orig)
            await db.rollback()
            raise DuplicateError("A quote with this number already exists")
        except SQLAlchemyError as e:
            logger.error("Database error creating quote: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while creating the quote")

        logger.info(
            "Created quote %s (%s items, total %s)",
            quote.quote_number, len(quote.selected_items), quote.grand_total,
        )
        return quote

    async def update(
        self,
        db: AsyncSession,
        quote_id: uuid.UUID,
        quote_data: QuoteUpdate,
    ) -> Quote:
        quote = await self.get_by_id(db, quote_id)

        for field in quote_data.model_fields_set:
            value = getattr(quote_data, field)
            if field in JSON_FIELDS:
                if value is None:
                    continue
                value = _to_json(field, value)
            setattr(quote, field, value)

        quote.grand_total = self.price(quote).grand_total

        try:
            await db.flush()
            await db.refresh(quote)
        except SQLAlchemyError as e:
            logger.error("Database error updating quote: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while updating the quote")

        logger.info("Updated quote %s (total %s)", quote.quote_number, quote.grand_total)
        return quote

    async def delete(self, db: AsyncSession, quote_id: uuid.UUID) -> None:
        """Deletes a quote. Invoices raised from it are kept and unlinked."""
        quote = await self.get_by_id(db, quote_id)
        try:
            await db.delete(quote)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting quote: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while deleting the quote")
        logger.info("Deleted quote %s", quote.quote_number)

    # ----------------------------------------------------------------
    # Pricing
    # ----------------------------------------------------------------

    def price(self, quote: Any) -> QuoteCalculation:
        """Full pricing of a stored (or unsaved) quote."""
        return calculate_quote_data(
            quote.selected_items,
            quote.hidden_costs,
            quote_config(quote, self.base_config()),
        )

    def preview(self, request: QuoteCalculationRequest) -> QuoteCalculation:
        """Stateless pricing of a quote being edited."""
        config = CalculationConfig.from_settings(
            settings,
            global_markup=request.global_markup,
            distribution_method=request.distribution_method,
            vat_enabled=request.vat_enabled,
            vat_rate=request.vat_rate,
        )
        return calculate_quote_data(request.selected_items, request.hidden_costs, config)

    async def calculate(self, db: AsyncSession, quote_id: uuid.UUID) -> QuoteCalculation:
        quote = await self.get_by_id(db, quote_id)
        return self.price(quote)

    async def payment_schedule(
        self,
        db: AsyncSession,
        quote_id: uuid.UUID,
        today: Optional[date] = None,
    ) -> list[PaymentStage]:
        """Payment stages of a quote with the status of their invoices."""
        quote = await self.get_by_id(db, quote_id)
        schedule = calculate_payment_schedule(quote, self.base_config())
        if not schedule:
            logger.info(
                "Quote %s has payment terms %r with no schedule",
                quote.quote_number, quote.payment_terms,
            )
        return correlate_stage_invoices(schedule, quote.invoices, today)

    # ----------------------------------------------------------------
    # Private helpers
    # ----------------------------------------------------------------

    async def _client_snapshot(
        self,
        db: AsyncSession,
        contact_id: Optional[uuid.UUID],
        client: ClientDetails,
    ) -> ClientDetails:
        if contact_id is None or client.name.strip():
            return client

        result = await db.execute(select(Contact).where(Contact.id == contact_id))
        contact = result.scalar_one_or_none()
        if contact is None:
            raise NotFoundError(f"Contact {contact_id} not found")

        return ClientDetails(
            name=contact.name,
            company=contact.company,
            email=contact.email,
            phone=contact.phone,
            address=contact.address,
        )
