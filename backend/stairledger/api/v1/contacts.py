"""
FastAPI router for Contact
Project: Stair Ledger
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.database import get_db
from stairledger.schemas.contact import ContactCreate, ContactList, ContactRead, ContactUpdate
from stairledger.services.contact_service import ContactService

router = APIRouter(
    prefix="/contacts",
    tags=["Contacts"],
)


def get_contact_service() -> ContactService:
    return ContactService()


@router.get(
    "/",
    summary="List contacts",
    response_model=ContactList,
    status_code=status.HTTP_200_OK,
)
async def get_contacts(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, description="Matches name, company, email or phone"),
    include_inactive: bool = Query(False, description="Include deleted contacts"),
    db: AsyncSession = Depends(get_db),
    service: ContactService = Depends(get_contact_service),
) -> ContactList:
    contacts, total = await service.get_all(
        db=db,
        page=page,
        per_page=per_page,
        search=search,
        include_inactive=include_inactive,
    )
    return ContactList(
        items=[ContactRead.model_validate(c) for c in contacts],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{contact_id}", summary="Contact details", response_model=ContactRead)
async def get_contact(
    contact_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: ContactService = Depends(get_contact_service),
) -> ContactRead:
    contact = await service.get_by_id(db=db, contact_id=contact_id)
    return ContactRead.model_validate(contact)


@router.post(
    "/",
    summary="Create contact",
    response_model=ContactRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_contact(
    contact_data: ContactCreate,
    db: AsyncSession = Depends(get_db),
    service: ContactService = Depends(get_contact_service),
) -> ContactRead:
    contact = await service.create(db=db, contact_data=contact_data)
    await db.commit()
    return ContactRead.model_validate(contact)


@router.put("/{contact_id}", summary="Update contact", response_model=ContactRead)
async def update_contact(
    contact_id: uuid.UUID,
    contact_data: ContactUpdate,
    db: AsyncSession = Depends(get_db),
    service: ContactService = Depends(get_contact_service),
) -> ContactRead:
    contact = await service.update(db=db, contact_id=contact_id, contact_data=contact_data)
    await db.commit()
    return ContactRead.model_validate(contact)


@router.delete(
    "/{contact_id}",
    summary="Delete contact",
    description="Soft delete: issued quotes and invoices keep their client details.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_contact(
    contact_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: ContactService = Depends(get_contact_service),
) -> None:
    await service.delete(db=db, contact_id=contact_id)
    await db.commit()
