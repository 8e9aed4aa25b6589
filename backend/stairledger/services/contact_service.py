"""
Service layer for Contact
Project: Stair Ledger

Business logic for customer records:
- Soft delete
- Search over name, company, email and phone
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.exceptions import ConflictError, NotFoundError
from stairledger.models import Contact
from stairledger.schemas.contact import ContactCreate, ContactUpdate

logger = logging.getLogger(__name__)


class ContactService:
    """
    CRUD operations on contacts.

    Methods flush but never commit: the caller owns the transaction.
    """

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 10,
        search: Optional[str] = None,
        include_inactive: bool = False,
    ) -> tuple[list[Contact], int]:
        """
        Paginated contacts, ordered by name.

        Returns:
            Tuple of (contacts, total count)
        """
        conditions = []
        if not include_inactive:
            conditions.append(Contact.is_active == True)
        if search:
            search_term = f"%{search}%"
            conditions.append(or_(
                Contact.name.ilike(search_term),
                Contact.company.ilike(search_term),
                Contact.email.ilike(search_term),
                Contact.phone.ilike(search_term),
            ))

        query = select(Contact).order_by(Contact.name.asc())
        if conditions:
            query = query.where(*conditions)
        query = query.offset((page - 1) * per_page).limit(per_page)
        result = await db.execute(query)
        contacts = list(result.scalars().all())

        count_query = select(func.count()).select_from(Contact)
        if conditions:
            count_query = count_query.where(*conditions)
        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        logger.info("Fetched %s of %s contacts (page %s)", len(contacts), total, page)
        return contacts, total

    async def get_by_id(
        self,
        db: AsyncSession,
        contact_id: uuid.UUID,
        include_inactive: bool = False,
    ) -> Contact:
        """
        Raises:
            NotFoundError: If the contact does not exist or was deleted
        """
        query = select(Contact).where(Contact.id == contact_id)
        if not include_inactive:
            query = query.where(Contact.is_active == True)
        result = await db.execute(query)
        contact = result.scalar_one_or_none()

        if contact is None:
            logger.warning("Contact not found: %s", contact_id)
            raise NotFoundError(f"Contact {contact_id} not found")
        return contact

    async def create(self, db: AsyncSession, contact_data: ContactCreate) -> Contact:
        contact = Contact(**contact_data.model_dump())
        try:
            db.add(contact)
            await db.flush()
            await db.refresh(contact)
        except SQLAlchemyError as e:
            logger.error("Database error creating contact: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while creating the contact")

        logger.info("Created contact: %s - %s", contact.id, contact.name)
        return contact

    async def update(
        self,
        db: AsyncSession,
        contact_id: uuid.UUID,
        contact_data: ContactUpdate,
    ) -> Contact:
        contact = await self.get_by_id(db, contact_id)

        for field, value in contact_data.model_dump(exclude_unset=True).items():
            setattr(contact, field, value)

        try:
            await db.flush()
            await db.refresh(contact)
        except SQLAlchemyError as e:
            logger.error("Database error updating contact: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while updating the contact")

        logger.info("Updated contact: %s - %s", contact.id, contact.name)
        return contact

    async def delete(self, db: AsyncSession, contact_id: uuid.UUID) -> None:
        """Soft delete: quotes and invoices keep their client snapshot."""
        contact = await self.get_by_id(db, contact_id)
        contact.is_active = False
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting contact: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while deleting the contact")
        logger.info("Soft deleted contact: %s - %s", contact.id, contact.name)
