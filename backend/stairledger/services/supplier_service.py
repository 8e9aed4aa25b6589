"""
Service layer for Suppliers and the catalogue
Project: Stair Ledger
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.exceptions import ConflictError, NotFoundError
from stairledger.models import CatalogItem, Supplier
from stairledger.schemas.supplier import (
    CatalogItemCreate,
    CatalogItemUpdate,
    SupplierCreate,
    SupplierUpdate,
)

logger = logging.getLogger(__name__)


class SupplierService:
    """
    Suppliers and their priced catalogue.

    Both suppliers and catalogue items are soft deleted so that the
    references stored in existing quotes stay meaningful.
    """

    # ----------------------------------------------------------------
    # Suppliers
    # ----------------------------------------------------------------

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 10,
        search: Optional[str] = None,
    ) -> tuple[list[Supplier], int]:
        conditions = [Supplier.is_active == True]
        if search:
            search_term = f"%{search}%"
            conditions.append(or_(
                Supplier.name.ilike(search_term),
                Supplier.contact_name.ilike(search_term),
                Supplier.email.ilike(search_term),
            ))

        query = (
            select(Supplier)
            .where(*conditions)
            .order_by(Supplier.name.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        result = await db.execute(query)
        suppliers = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count()).select_from(Supplier).where(*conditions)
        )
        total = count_result.scalar() or 0
        return suppliers, total

    async def get_by_id(self, db: AsyncSession, supplier_id: uuid.UUID) -> Supplier:
        result = await db.execute(
            select(Supplier).where(Supplier.id == supplier_id, Supplier.is_active == True)
        )
        supplier = result.scalar_one_or_none()
        if supplier is None:
            logger.warning("Supplier not found: %s", supplier_id)
            raise NotFoundError(f"Supplier {supplier_id} not found")
        return supplier

    async def create(self, db: AsyncSession, supplier_data: SupplierCreate) -> Supplier:
        supplier = Supplier(**supplier_data.model_dump())
        try:
            db.add(supplier)
            await db.flush()
            await db.refresh(supplier)
        except SQLAlchemyError as e:
            logger.error("Database error creating supplier: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while creating the supplier")

        logger.info("Created supplier: %s - %s", supplier.id, supplier.name)
        return supplier

    async def update(
        self,
        db: AsyncSession,
        supplier_id: uuid.UUID,
        supplier_data: SupplierUpdate,
    ) -> Supplier:
        supplier = await self.get_by_id(db, supplier_id)
        for field, value in supplier_data.model_dump(exclude_unset=True).items():
            setattr(supplier, field, value)
        try:
            await db.flush()
            await db.refresh(supplier)
        except SQLAlchemyError as e:
            logger.error("Database error updating supplier: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while updating the supplier")
        return supplier

    async def delete(self, db: AsyncSession, supplier_id: uuid.UUID) -> None:
        """Soft deletes the supplier together with its catalogue."""
        supplier = await self.get_by_id(db, supplier_id)
        supplier.is_active = False
        for item in supplier.items:
            item.is_active = False
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting supplier: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while deleting the supplier")
        logger.info("Soft deleted supplier %s and %s catalogue items", supplier.id, len(supplier.items))

    # ----------------------------------------------------------------
    # Catalogue
    # ----------------------------------------------------------------

    async def list_items(
        self,
        db: AsyncSession,
        supplier_id: Optional[uuid.UUID] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[list[CatalogItem], int]:
        """Catalogue items, optionally restricted to one supplier or category."""
        conditions = [CatalogItem.is_active == True]
        if supplier_id is not None:
            conditions.append(CatalogItem.supplier_id == supplier_id)
        if category:
            conditions.append(CatalogItem.category == category)
        if search:
            search_term = f"%{search}%"
            conditions.append(or_(
                CatalogItem.name.ilike(search_term),
                CatalogItem.description.ilike(search_term),
            ))

        query = (
            select(CatalogItem)
            .where(*conditions)
            .order_by(CatalogItem.name.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        result = await db.execute(query)
        items = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count()).select_from(CatalogItem).where(*conditions)
        )
        total = count_result.scalar() or 0
        return items, total

    async def get_item(self, db: AsyncSession, item_id: uuid.UUID) -> CatalogItem:
        result = await db.execute(
            select(CatalogItem).where(CatalogItem.id == item_id, CatalogItem.is_active == True)
        )
        item = result.scalar_one_or_none()
        if item is None:
            logger.warning("Catalogue item not found: %s", item_id)
            raise NotFoundError(f"Catalogue item {item_id} not found")
        return item

    async def create_item(
        self,
        db: AsyncSession,
        supplier_id: uuid.UUID,
        item_data: CatalogItemCreate,
    ) -> CatalogItem:
        await self.get_by_id(db, supplier_id)

        item = CatalogItem(supplier_id=supplier_id, **item_data.model_dump())
        try:
            db.add(item)
            await db.flush()
            await db.refresh(item)
        except SQLAlchemyError as e:
            logger.error("Database error creating catalogue item: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while creating the catalogue item")

        logger.info("Created catalogue item %s for supplier %s", item.id, supplier_id)
        return item

    async def update_item(
        self,
        db: AsyncSession,
        item_id: uuid.UUID,
        item_data: CatalogItemUpdate,
    ) -> CatalogItem:
        item = await self.get_item(db, item_id)
        for field, value in item_data.model_dump(exclude_unset=True).items():
            setattr(item, field, value)
        try:
            await db.flush()
            await db.refresh(item)
        except SQLAlchemyError as e:
            logger.error("Database error updating catalogue item: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while updating the catalogue item")
        return item

    async def delete_item(self, db: AsyncSession, item_id: uuid.UUID) -> None:
        item = await self.get_item(db, item_id)
        item.is_active = False
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting catalogue item: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Database error while deleting the catalogue item")
        logger.info("Soft deleted catalogue item: %s", item_id)
