"""
API v1 Routes
Project: Stair Ledger
"""

from fastapi import APIRouter

from stairledger.api.v1 import cis_records, company, contacts, invoices, quotes, suppliers

api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(contacts.router)
api_v1_router.include_router(suppliers.router)
api_v1_router.include_router(suppliers.catalog_router)
api_v1_router.include_router(quotes.router)
api_v1_router.include_router(invoices.router)
api_v1_router.include_router(cis_records.router)
api_v1_router.include_router(company.router)

__all__ = ["api_v1_router"]
