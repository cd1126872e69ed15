"""Execution tracking for cron jobs.

Every (job, organization) run gets a ``cron_job_executions`` row that starts
``pending`` and is moved exactly once to ``success`` or ``failure``.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

import asyncpg
import structlog

from manageros.adapters.db.app_db import AppDatabase, decode_json
from manageros.core.exceptions import (
    ExecutionAlreadyFinished,
    ExecutionNotFound,
    StorageUnavailable,
)
from manageros.models import CronJobExecutionStatus

logger = structlog.get_logger()

# Errors that mean the store itself is unreachable or rejected the write
_STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


@dataclass(frozen=True)
class CronJobExecution:
    """An execution record."""

    id: UUID
    job_id: str
    job_name: str
    organization_id: UUID
    status: CronJobExecutionStatus
    notifications_created: int
    metadata: dict[str, Any] | None
    error_message: str | None
    started_at: datetime
    completed_at: datetime | None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CronJobExecution":
        """Build from a database row."""
        return cls(
            id=row["id"],
            job_id=row["job_id"],
            job_name=row["job_name"],
            organization_id=row["organization_id"],
            status=CronJobExecutionStatus(row["status"]),
            notifications_created=row.get("notifications_created") or 0,
            metadata=decode_json(row.get("metadata")),
            error_message=row.get("error_message"),
            started_at=row["started_at"],
            completed_at=row.get("completed_at"),
        )


class CronJobExecutionService:
    """Opens and finalizes execution records."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with the application database.

        Args:
            db: Application database.
        """
        self.db = db

    async def start_execution(
        self, job_id: str, job_name: str, organization_id: UUID
    ) -> CronJobExecution:
        """Open a pending execution record.

        Raises:
            StorageUnavailable: If the record cannot be written.
        """
        try:
            row = await self.db.create_cron_execution(job_id, job_name, organization_id)
        except _STORAGE_ERRORS as e:
            raise StorageUnavailable(f"Failed to start execution: {e}") from e

        execution = CronJobExecution.from_row(row)
        logger.info(
            "cron_execution_started",
            execution_id=str(execution.id),
            job_id=job_id,
            organization_id=str(organization_id),
        )
        return execution

    async def complete_execution(
        self,
        execution_id: UUID,
        notifications_created: int,
        metadata: dict[str, Any] | None = None,
    ) -> CronJobExecution:
        """Mark a pending execution as successful.

        Raises:
            ExecutionNotFound: If the id is unknown.
            ExecutionAlreadyFinished: If the execution is already terminal.
            StorageUnavailable: If the update cannot be written.
        """
        execution = await self._finish(
            execution_id,
            CronJobExecutionStatus.SUCCESS,
            notifications_created=notifications_created,
            metadata=metadata,
        )
        logger.info(
            "cron_execution_completed",
            execution_id=str(execution_id),
            notifications_created=notifications_created,
        )
        return execution

    async def fail_execution(
        self,
        execution_id: UUID,
        error_message: str,
        metadata: dict[str, Any] | None = None,
    ) -> CronJobExecution:
        """Mark a pending execution as failed.

        Raises:
            ExecutionNotFound: If the id is unknown.
            ExecutionAlreadyFinished: If the execution is already terminal.
            StorageUnavailable: If the update cannot be written.
        """
        execution = await self._finish(
            execution_id,
            CronJobExecutionStatus.FAILURE,
            notifications_created=0,
            metadata=metadata,
            error_message=error_message,
        )
        logger.warning(
            "cron_execution_failed",
            execution_id=str(execution_id),
            error=error_message,
        )
        return execution

    async def list_executions(
        self,
        job_id: str | None = None,
        organization_id: UUID | None = None,
        limit: int = 50,
    ) -> list[CronJobExecution]:
        """List execution records, newest first."""
        try:
            rows = await self.db.list_cron_executions(
                job_id=job_id, organization_id=organization_id, limit=limit
            )
        except _STORAGE_ERRORS as e:
            raise StorageUnavailable(f"Failed to list executions: {e}") from e
        return [CronJobExecution.from_row(row) for row in rows]

    async def _finish(
        self,
        execution_id: UUID,
        status: CronJobExecutionStatus,
        notifications_created: int,
        metadata: dict[str, Any] | None,
        error_message: str | None = None,
    ) -> CronJobExecution:
        try:
            row = await self.db.finish_cron_execution(
                execution_id,
                status.value,
                notifications_created,
                metadata,
                error_message,
            )
            if row is not None:
                return CronJobExecution.from_row(row)

            # Nothing pending with this id: tell apart unknown from already finished
            existing = await self.db.get_cron_execution(execution_id)
        except _STORAGE_ERRORS as e:
            raise StorageUnavailable(f"Failed to finish execution: {e}") from e

        if existing is None:
            raise ExecutionNotFound(execution_id)
        raise ExecutionAlreadyFinished(execution_id, existing["status"])
