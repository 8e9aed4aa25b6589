"""
Shared schema helpers
Project: Stair Ledger

Enums and coercion helpers used by both quotes and invoices.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class ItemCategory(str, Enum):
    """Catalogue categories."""
    TIMBER = "timber"
    HARDWARE = "hardware"
    FIXTURES = "fixtures"
    GLASS = "glass"
    LABOUR = "labour"
    OTHER = "other"


class LineItemKind(str, Enum):
    """
    Explicit classification of a priced line.

    CIS withholding applies to LABOUR lines only; CIS marks the
    deduction line itself.
    """
    MATERIALS = "materials"
    LABOUR = "labour"
    CIS = "cis"


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """
    Lenient numeric coercion for records coming from the frontend.

    Blank strings, None and unparsable values become `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    return result if result.is_finite() else default
