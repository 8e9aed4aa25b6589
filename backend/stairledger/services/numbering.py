"""
Progressive document numbering
Project: Stair Ledger

Quote and invoice numbers restart every year: PREFIX + YYYY-NNNN
(e.g. INV-2025-0001).
"""

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from stairledger.core.exceptions import ConflictError

MAX_PER_YEAR = 9999


async def next_document_number(
    db: AsyncSession,
    column,
    prefix: str,
    year: int,
) -> str:
    """
    Next free number for `column` in `year`.

    A transaction-scoped advisory lock serialises concurrent callers, so
    two documents created at the same time never get the same number.

    Raises:
        ConflictError: If the yearly sequence is exhausted
    """
    year_prefix = f"{prefix}{year}-"

    await db.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
        {"lock_key": year_prefix},
    )

    result = await db.execute(
        select(column)
        .where(column.like(f"{year_prefix}%"))
        .order_by(column.desc())
        .limit(1)
    )
    last_number = result.scalar_one_or_none()

    next_number = int(last_number.rsplit("-", 1)[1]) + 1 if last_number else 1
    if next_number > MAX_PER_YEAR:
        raise ConflictError(f"Numbering limit reached for {year_prefix}")

    return f"{year_prefix}{next_number:04d}"
