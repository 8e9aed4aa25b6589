"""
Unit tests for the session dependency and the schema reset.

The engine and session factory are replaced with mocks.
"""

from unittest.mock import AsyncMock, MagicMock, call, patch

import pytest

from stairledger.core import database
from stairledger.models import Base


def _mock_engine():
    conn = MagicMock()
    conn.run_sync = AsyncMock()
    engine = MagicMock()
    engine.begin.return_value.__aenter__.return_value = conn
    return engine, conn


# ============================================================
# get_db
# ============================================================


class TestGetDb:
    """Tests for the request-scoped session."""

    @pytest.mark.asyncio
    async def test_error_rolls_back_and_closes(self):
        session = AsyncMock()
        factory = MagicMock()
        factory.return_value.__aenter__.return_value = session
        factory.return_value.__aexit__.return_value = False

        with patch.object(database, "AsyncSessionLocal", factory):
            sessions = database.get_db()
            assert await sessions.__anext__() is session
            with pytest.raises(ValueError):
                await sessions.athrow(ValueError("request failed"))

        session.rollback.assert_awaited_once()
        session.close.assert_awaited_once()


# ============================================================
# reset_schema
# ============================================================


class TestResetSchema:
    """Tests for dropping and recreating the tables."""

    @pytest.mark.asyncio
    async def test_drops_then_creates_all_tables(self):
        engine, conn = _mock_engine()
        with patch.object(database, "engine", engine), \
                patch.object(database, "settings", MagicMock(is_production=False)):
            tables = await database.reset_schema()

        assert conn.run_sync.await_args_list == [
            call(Base.metadata.drop_all),
            call(Base.metadata.create_all),
        ]
        assert "invoices" in tables
        assert "cis_records" in tables

    @pytest.mark.asyncio
    async def test_production_is_refused(self):
        engine, _ = _mock_engine()
        with patch.object(database, "engine", engine), \
                patch.object(database, "settings", MagicMock(is_production=True)):
            with pytest.raises(RuntimeError):
                await database.reset_schema()

        engine.begin.assert_not_called()

    @pytest.mark.asyncio
    async def test_production_allowed_when_forced(self):
        engine, conn = _mock_engine()
        with patch.object(database, "engine", engine), \
                patch.object(database, "settings", MagicMock(is_production=True)):
            await database.reset_schema(allow_production=True)

        assert conn.run_sync.await_count == 2
