"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import pytest

from manageros.core.tenancy import Principal
from manageros.cron.types import CronJob, JobContext, JobResult


class FakeAppDatabase:
    """In-memory stand-in for the organization and execution queries of AppDatabase."""

    def __init__(self, organization_ids: list[uuid.UUID] | None = None) -> None:
        self.organizations = [
            {"id": org_id, "external_ref": None} for org_id in (organization_ids or [])
        ]
        self.executions: dict[uuid.UUID, dict[str, Any]] = {}
        self.list_organizations_calls = 0

    async def get_organization(self, organization_id: uuid.UUID) -> dict[str, Any] | None:
        for org in self.organizations:
            if org["id"] == organization_id:
                return {**org, "name": "Org", "slug": str(organization_id)}
        return None

    async def list_organizations(self) -> list[dict[str, Any]]:
        self.list_organizations_calls += 1
        return list(self.organizations)

    async def create_cron_execution(
        self, job_id: str, job_name: str, organization_id: uuid.UUID
    ) -> dict[str, Any]:
        row = {
            "id": uuid.uuid4(),
            "job_id": job_id,
            "job_name": job_name,
            "organization_id": organization_id,
            "status": "pending",
            "notifications_created": 0,
            "metadata": None,
            "error_message": None,
            "started_at": datetime.now(UTC),
            "completed_at": None,
        }
        self.executions[row["id"]] = row
        return dict(row)

    async def get_cron_execution(self, execution_id: uuid.UUID) -> dict[str, Any] | None:
        row = self.executions.get(execution_id)
        return dict(row) if row else None

    async def finish_cron_execution(
        self,
        execution_id: uuid.UUID,
        status: str,
        notifications_created: int,
        metadata: dict[str, Any] | None,
        error_message: str | None,
    ) -> dict[str, Any] | None:
        row = self.executions.get(execution_id)
        if row is None or row["status"] != "pending":
            return None
        row.update(
            status=status,
            notifications_created=notifications_created,
            metadata=metadata,
            error_message=error_message,
            completed_at=datetime.now(UTC),
        )
        return dict(row)

    async def list_cron_executions(
        self,
        job_id: str | None = None,
        organization_id: uuid.UUID | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        rows = [
            dict(row)
            for row in self.executions.values()
            if (job_id is None or row["job_id"] == job_id)
            and (organization_id is None or row["organization_id"] == organization_id)
        ]
        rows.sort(key=lambda r: r["started_at"], reverse=True)
        return rows[:limit]


class StaticJob(CronJob):
    """Job that returns a fixed result, or raises for selected organizations."""

    def __init__(
        self,
        job_id: str = "static-job",
        notifications: int = 3,
        fail_for: dict[uuid.UUID, Exception] | None = None,
    ) -> None:
        self.id = job_id
        self.name = f"Static {job_id}"
        self.description = "Test job"
        self.schedule = "0 9 * * *"
        self.result_count = notifications
        self.fail_for = fail_for or {}
        self.calls: list[uuid.UUID] = []

    async def execute(self, context: JobContext) -> JobResult:
        self.calls.append(context.organization_id)
        error = self.fail_for.get(context.organization_id)
        if error is not None:
            raise error
        return JobResult(notifications_created=self.result_count, metadata={})


@pytest.fixture
def organization_id() -> uuid.UUID:
    """Return a sample organization ID."""
    return uuid.uuid4()


@pytest.fixture
def user_id() -> uuid.UUID:
    """Return a sample user ID."""
    return uuid.uuid4()


@pytest.fixture
def principal(organization_id: uuid.UUID, user_id: uuid.UUID) -> Principal:
    """Return a principal that belongs to an organization."""
    return Principal(
        user_id=user_id,
        email="manager@example.com",
        name="Manager",
        organization_id=organization_id,
    )


@pytest.fixture
def started_at() -> datetime:
    """Return a fixed job start time."""
    return datetime(2024, 6, 10, 9, 0, tzinfo=UTC)
