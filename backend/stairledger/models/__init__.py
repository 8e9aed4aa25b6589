"""
SQLAlchemy database models
Project: Stair Ledger

Central import of every model for metadata creation and general use.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


from stairledger.models.contact import Contact
from stairledger.models.supplier import Supplier, CatalogItem
from stairledger.models.quote import Quote
from stairledger.models.invoice import Invoice, CISRecord

__all__ = [
    "Base",
    "Contact",
    "Supplier",
    "CatalogItem",
    "Quote",
    "Invoice",
    "CISRecord",
]
