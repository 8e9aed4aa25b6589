"""
FastAPI routers for Suppliers and the catalogue
Project: Stair Ledger
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.database import get_db
from stairledger.schemas.common import ItemCategory
from stairledger.schemas.supplier import (
    CatalogItemCreate,
    CatalogItemList,
    CatalogItemRead,
    CatalogItemUpdate,
    SupplierCreate,
    SupplierList,
    SupplierRead,
    SupplierUpdate,
)
from stairledger.services.supplier_service import SupplierService

router = APIRouter(
    prefix="/suppliers",
    tags=["Suppliers"],
)

catalog_router = APIRouter(
    prefix="/catalog-items",
    tags=["Catalogue"],
)


def get_supplier_service() -> SupplierService:
    return SupplierService()


# -------------------------------------------------------------------
# Suppliers
# -------------------------------------------------------------------

@router.get("/", summary="List suppliers", response_model=SupplierList)
async def get_suppliers(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> SupplierList:
    suppliers, total = await service.get_all(db=db, page=page, per_page=per_page, search=search)
    return SupplierList(
        items=[SupplierRead.model_validate(s) for s in suppliers],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{supplier_id}", summary="Supplier details", response_model=SupplierRead)
async def get_supplier(
    supplier_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> SupplierRead:
    supplier = await service.get_by_id(db=db, supplier_id=supplier_id)
    return SupplierRead.model_validate(supplier)


@router.post(
    "/",
    summary="Create supplier",
    response_model=SupplierRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_supplier(
    supplier_data: SupplierCreate,
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> SupplierRead:
    supplier = await service.create(db=db, supplier_data=supplier_data)
    await db.commit()
    return SupplierRead.model_validate(supplier)


@router.put("/{supplier_id}", summary="Update supplier", response_model=SupplierRead)
async def update_supplier(
    supplier_id: uuid.UUID,
    supplier_data: SupplierUpdate,
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> SupplierRead:
    supplier = await service.update(db=db, supplier_id=supplier_id, supplier_data=supplier_data)
    await db.commit()
    return SupplierRead.model_validate(supplier)


@router.delete(
    "/{supplier_id}",
    summary="Delete supplier",
    description="Soft deletes the supplier and its catalogue items.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_supplier(
    supplier_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> None:
    await service.delete(db=db, supplier_id=supplier_id)
    await db.commit()


@router.get("/{supplier_id}/catalog", summary="Supplier catalogue", response_model=CatalogItemList)
async def get_supplier_catalog(
    supplier_id: uuid.UUID,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> CatalogItemList:
    await service.get_by_id(db=db, supplier_id=supplier_id)
    items, total = await service.list_items(
        db=db, supplier_id=supplier_id, page=page, per_page=per_page
    )
    return CatalogItemList(
        items=[CatalogItemRead.model_validate(i) for i in items],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post(
    "/{supplier_id}/catalog",
    summary="Add catalogue item",
    response_model=CatalogItemRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_catalog_item(
    supplier_id: uuid.UUID,
    item_data: CatalogItemCreate,
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> CatalogItemRead:
    item = await service.create_item(db=db, supplier_id=supplier_id, item_data=item_data)
    await db.commit()
    return CatalogItemRead.model_validate(item)


# -------------------------------------------------------------------
# Catalogue items
# -------------------------------------------------------------------

@catalog_router.get("/", summary="Search the catalogue", response_model=CatalogItemList)
async def search_catalog(
    search: Optional[str] = Query(None),
    category: Optional[ItemCategory] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> CatalogItemList:
    items, total = await service.list_items(
        db=db,
        category=category.value if category else None,
        search=search,
        page=page,
        per_page=per_page,
    )
    return CatalogItemList(
        items=[CatalogItemRead.model_validate(i) for i in items],
        total=total,
        page=page,
        per_page=per_page,
    )


@catalog_router.put("/{item_id}", summary="Update catalogue item", response_model=CatalogItemRead)
async def update_catalog_item(
    item_id: uuid.UUID,
    item_data: CatalogItemUpdate,
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> CatalogItemRead:
    item = await service.update_item(db=db, item_id=item_id, item_data=item_data)
    await db.commit()
    return CatalogItemRead.model_validate(item)


@catalog_router.delete(
    "/{item_id}",
    summary="Delete catalogue item",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_catalog_item(
    item_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: SupplierService = Depends(get_supplier_service),
) -> None:
    await service.delete_item(db=db, item_id=item_id)
    await db.commit()
