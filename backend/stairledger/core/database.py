"""
Database access - SQLAlchemy 2.0 Async
Project: Stair Ledger

One async engine for the process. Requests get their own session from
`get_db`; the CRUD services only flush and leave the commit to the
router, while InvoiceService commits its CIS transactions itself.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from stairledger.core.config import settings
from stairledger.models import Base

logger = logging.getLogger(__name__)

engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

# Invoices stay readable after commit: routers serialise them afterwards
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; anything left uncommitted by an error is rolled back."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database reachable at startup")
    except Exception as e:
        logger.error("Database unreachable at startup: %s", e)
        raise


async def close_db() -> None:
    await engine.dispose()
    logger.info("Database pool disposed")


async def reset_schema(allow_production: bool = False) -> list[str]:
    """
    Drops every table and creates the current schema from the models.

    All quotes, invoices and CIS records are lost, so production databases
    are refused unless allow_production is set. Returns the table names.
    """
    if settings.is_production and not allow_production:
        raise RuntimeError("Refusing to reset a production database")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    tables = sorted(Base.metadata.tables)
    logger.warning("Database schema reset: %s", ", ".join(tables))
    return tables
