"""Unit tests for AppDatabase."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import asyncpg
import pytest

from manageros.adapters.db.app_db import AppDatabase
from manageros.core.exceptions import SlugTaken


class TestCreateOrganization:
    """Tests for AppDatabase.create_organization."""

    @pytest.fixture
    def db(self) -> AppDatabase:
        """Return an adapter whose query helper is mocked."""
        db = AppDatabase("postgresql://localhost/test")
        db.execute_returning = AsyncMock()  # type: ignore[method-assign]
        return db

    async def test_returns_row(self, db: AppDatabase) -> None:
        """The inserted row is returned."""
        row = {"id": uuid.uuid4(), "name": "Acme", "slug": "acme"}
        db.execute_returning.return_value = row  # type: ignore[attr-defined]

        assert await db.create_organization(name="Acme", slug="acme") == row

    async def test_duplicate_slug(self, db: AppDatabase) -> None:
        """A unique violation on insert surfaces as SlugTaken."""
        db.execute_returning.side_effect = asyncpg.UniqueViolationError(  # type: ignore[attr-defined]
            'duplicate key value violates unique constraint "organizations_slug_key"'
        )

        with pytest.raises(SlugTaken) as exc_info:
            await db.create_organization(name="Acme", slug="acme")

        assert exc_info.value.slug == "acme"
