"""Application database adapter using asyncpg."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

import asyncpg
import structlog

from manageros.adapters.db.tenant_scope import OrganizationScope
from manageros.core.exceptions import SlugTaken

logger = structlog.get_logger()


def decode_json(value: Any) -> Any:
    """Decode a JSONB column that asyncpg returned as text."""
    if isinstance(value, str):
        return json.loads(value)
    return value


class AppDatabase:
    """Application database for organizations, users, notifications, and cron runs.

    Queries here are either global (organizations, API keys, cron
    executions keyed by their own id) or take an explicit organization id.
    Tenant-owned domain data is only reachable through ``for_organization``.
    """

    def __init__(self, dsn: str):
        """Initialize the app database adapter."""
        self.dsn = dsn
        self.pool: asyncpg.Pool[asyncpg.Connection[asyncpg.Record]] | None = None

    async def connect(self) -> None:
        """Create connection pool."""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=2,
            max_size=10,
            command_timeout=60,
        )
        logger.info("app_database_connected", dsn=self.dsn.split("@")[-1])

    async def close(self) -> None:
        """Close connection pool."""
        if self.pool:
            await self.pool.close()
            logger.info("app_database_disconnected")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection from the pool."""
        if self.pool is None:
            raise RuntimeError("Database pool not initialized")
        async with self.pool.acquire() as conn:
            yield conn

    async def fetch_one(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Fetch a single row."""
        async with self.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            if row:
                return dict(row)
            return None

    async def fetch_all(self, query: str, *args: Any) -> list[dict[str, Any]]:
        """Fetch all rows."""
        async with self.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]

    async def fetch_value(self, query: str, *args: Any) -> Any:
        """Fetch the first column of the first row."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query and return status."""
        async with self.acquire() as conn:
            result: str = await conn.execute(query, *args)
            return result

    async def execute_returning(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Execute a query with RETURNING clause."""
        async with self.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            if row:
                return dict(row)
            return None

    def for_organization(self, organization_id: UUID) -> OrganizationScope:
        """Return a repository bound to one organization."""
        return OrganizationScope(self, organization_id)

    # Organization operations
    async def get_organization(self, organization_id: UUID) -> dict[str, Any] | None:
        """Get organization by ID."""
        return await self.fetch_one(
            "SELECT * FROM organizations WHERE id = $1",
            organization_id,
        )

    async def create_organization(
        self, name: str, slug: str, external_ref: str | None = None
    ) -> dict[str, Any]:
        """Create a new organization.

        Raises:
            SlugTaken: If another organization already uses ``slug``.
        """
        try:
            result = await self.execute_returning(
                """INSERT INTO organizations (name, slug, external_ref)
                   VALUES ($1, $2, $3)
                   RETURNING *""",
                name,
                slug,
                external_ref,
            )
        except asyncpg.UniqueViolationError as e:
            raise SlugTaken(slug) from e
        if result is None:
            raise RuntimeError("Failed to create organization")
        return result

    async def list_organizations(self) -> list[dict[str, Any]]:
        """List every organization, oldest first."""
        return await self.fetch_all(
            """SELECT id, external_ref FROM organizations
               ORDER BY created_at, id""",
        )

    # User and API key operations
    async def get_user(self, user_id: UUID) -> dict[str, Any] | None:
        """Get user by ID."""
        return await self.fetch_one(
            "SELECT id, email, name, organization_id FROM users WHERE id = $1",
            user_id,
        )

    async def set_user_organization(self, user_id: UUID, organization_id: UUID) -> bool:
        """Attach a user to an organization if they have none yet."""
        result = await self.execute(
            """UPDATE users SET organization_id = $2, updated_at = NOW()
               WHERE id = $1 AND organization_id IS NULL""",
            user_id,
            organization_id,
        )
        return result == "UPDATE 1"

    async def get_api_key_by_hash(self, key_hash: str) -> dict[str, Any] | None:
        """Get an active API key with its owner."""
        return await self.fetch_one(
            """SELECT ak.id, ak.user_id, ak.expires_at,
                      u.email AS user_email, u.name AS user_name, u.organization_id
               FROM api_keys ak
               JOIN users u ON u.id = ak.user_id
               WHERE ak.key_hash = $1 AND ak.is_active = true""",
            key_hash,
        )

    async def update_api_key_last_used(self, key_id: UUID) -> None:
        """Update API key last used timestamp."""
        await self.execute(
            "UPDATE api_keys SET last_used_at = NOW() WHERE id = $1",
            key_id,
        )

    # Cron job execution operations
    async def create_cron_execution(
        self, job_id: str, job_name: str, organization_id: UUID
    ) -> dict[str, Any]:
        """Insert a pending execution record."""
        result = await self.execute_returning(
            """INSERT INTO cron_job_executions
                (job_id, job_name, organization_id, status, notifications_created, started_at)
               VALUES ($1, $2, $3, 'pending', 0, NOW())
               RETURNING *""",
            job_id,
            job_name,
            organization_id,
        )
        if result is None:
            raise RuntimeError("Failed to create cron job execution")
        return result

    async def get_cron_execution(self, execution_id: UUID) -> dict[str, Any] | None:
        """Get an execution record by ID."""
        return await self.fetch_one(
            "SELECT * FROM cron_job_executions WHERE id = $1",
            execution_id,
        )

    async def finish_cron_execution(
        self,
        execution_id: UUID,
        status: str,
        notifications_created: int,
        metadata: dict[str, Any] | None,
        error_message: str | None = None,
    ) -> dict[str, Any] | None:
        """Move a pending execution to a terminal status.

        Returns None when no pending record with this id exists.
        """
        return await self.execute_returning(
            """UPDATE cron_job_executions
               SET status = $2,
                   notifications_created = $3,
                   metadata = $4,
                   error_message = $5,
                   completed_at = NOW(),
                   updated_at = NOW()
               WHERE id = $1 AND status = 'pending'
               RETURNING *""",
            execution_id,
            status,
            notifications_created,
            json.dumps(metadata) if metadata is not None else None,
            error_message,
        )

    async def list_cron_executions(
        self,
        job_id: str | None = None,
        organization_id: UUID | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """List execution records, newest first."""
        return await self.fetch_all(
            """SELECT * FROM cron_job_executions
               WHERE ($1::text IS NULL OR job_id = $1)
                 AND ($2::uuid IS NULL OR organization_id = $2)
               ORDER BY started_at DESC
               LIMIT $3""",
            job_id,
            organization_id,
            limit,
        )
