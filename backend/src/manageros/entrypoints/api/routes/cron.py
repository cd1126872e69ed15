"""Cron trigger API routes.

An external scheduler calls these with ``authorization=Bearer <CRON_SECRET>``
as a query parameter. Errors are reported as ``{"error": ...}`` bodies so the
scheduler always receives JSON.
"""

import hmac
from datetime import UTC, datetime
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from manageros.core.exceptions import (
    JobNotFound,
    Misconfigured,
    OrganizationNotFound,
    StorageUnavailable,
    Unauthorized,
)
from manageros.cron.execution_service import CronJobExecutionService
from manageros.cron.registry import CronJobRegistry
from manageros.cron.runner import CronRunner, CronRunSummary, error_message
from manageros.entrypoints.api.deps import (
    get_cron_registry,
    get_cron_runner,
    get_cron_secret,
    get_execution_service,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/cron", tags=["cron"])

CronRunnerDep = Annotated[CronRunner, Depends(get_cron_runner)]
CronRegistryDep = Annotated[CronJobRegistry, Depends(get_cron_registry)]
ExecutionServiceDep = Annotated[CronJobExecutionService, Depends(get_execution_service)]
CronSecretDep = Annotated[str | None, Depends(get_cron_secret)]


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobRunResultResponse(CamelModel):
    """Outcome of one job for one organization."""

    job_id: str
    job_name: str
    organization_id: UUID
    success: bool
    notifications_created: int
    error: str | None = None


class CronSummaryResponse(CamelModel):
    """Aggregate statistics for a cron run."""

    total_jobs: int
    successful_jobs: int
    failed_jobs: int
    total_notifications: int
    results: list[JobRunResultResponse]


class CronRunResponse(CamelModel):
    """Response for a completed cron run."""

    success: bool = True
    message: str = "Cron jobs executed successfully"
    summary: CronSummaryResponse
    timestamp: datetime


class CronJobResponse(CamelModel):
    """A registered job."""

    id: str
    name: str
    description: str
    schedule: str


class CronExecutionResponse(CamelModel):
    """An execution record."""

    id: UUID
    job_id: str
    job_name: str
    organization_id: UUID
    status: str
    notifications_created: int
    metadata: dict[str, Any] | None = None
    error_message: str | None = None
    started_at: datetime
    completed_at: datetime | None = None


def verify_cron_secret(authorization: str | None, cron_secret: str | None) -> None:
    """Check the trigger's shared secret.

    Raises:
        Misconfigured: If no secret is configured on the server.
        Unauthorized: If the supplied value is missing or does not match.
    """
    if not cron_secret:
        raise Misconfigured("Cron secret not configured")

    expected = f"Bearer {cron_secret}"
    if authorization is None or not hmac.compare_digest(
        authorization.encode(), expected.encode()
    ):
        raise Unauthorized()


def error_response(status_code: int, message: str) -> JSONResponse:
    """JSON error body in the shape cron callers expect."""
    return JSONResponse({"error": message}, status_code=status_code)


def camel_json(model: BaseModel) -> JSONResponse:
    """Serialize a response model with camelCase keys, omitting empty optionals."""
    return JSONResponse(model.model_dump(mode="json", by_alias=True, exclude_none=True))


def authorize(authorization: str | None, cron_secret: str | None) -> JSONResponse | None:
    """Return an error response if the caller may not trigger cron routes."""
    try:
        verify_cron_secret(authorization, cron_secret)
    except Misconfigured as e:
        logger.error("cron_secret_not_configured")
        return error_response(500, str(e))
    except Unauthorized as e:
        logger.warning("invalid_cron_secret")
        return error_response(401, str(e))
    return None


def parse_organization_id(org: str) -> UUID | None:
    """Parse the ``org`` filter, returning None if it is not a valid id."""
    try:
        return UUID(org)
    except ValueError:
        return None


def summary_response(summary: CronRunSummary) -> CronRunResponse:
    """Build the response body for a finished run."""
    return CronRunResponse(
        summary=CronSummaryResponse(
            total_jobs=summary.total_jobs,
            successful_jobs=summary.successful_jobs,
            failed_jobs=summary.failed_jobs,
            total_notifications=summary.total_notifications,
            results=[
                JobRunResultResponse(
                    job_id=r.job_id,
                    job_name=r.job_name,
                    organization_id=r.organization_id,
                    success=r.success,
                    notifications_created=r.notifications_created,
                    error=r.error,
                )
                for r in summary.results
            ],
        ),
        timestamp=datetime.now(UTC),
    )


@router.get("/notifications")
async def run_notification_jobs(
    runner: CronRunnerDep,
    cron_secret: CronSecretDep,
    authorization: str | None = None,
    job: str | None = None,
    org: str | None = None,
    verbose: str | None = None,
) -> JSONResponse:
    """Run notification jobs for every (job, organization) pair.

    Args:
        runner: Cron runner dependency.
        cron_secret: Configured shared secret.
        authorization: ``Bearer <secret>`` supplied by the scheduler.
        job: Only run this job id.
        org: Only run for this organization id.
        verbose: ``"true"`` logs each pair's outcome and metadata; other values are ignored.

    Returns:
        Run summary, or an error body with 400/401/404/500.
    """
    denied = authorize(authorization, cron_secret)
    if denied is not None:
        return denied

    organization_id = None
    if org:
        organization_id = parse_organization_id(org)
        if organization_id is None:
            return error_response(400, f"Invalid organization ID '{org}'")

    verbose_logging = verbose == "true"

    logger.info(
        "cron_trigger_received",
        job_id=job or "all",
        organization_id=org or "all",
        verbose=verbose_logging,
    )

    try:
        summary = await runner.run(
            job_id=job, organization_id=organization_id, verbose=verbose_logging
        )
    except JobNotFound as e:
        return error_response(400, str(e))
    except OrganizationNotFound as e:
        return error_response(404, str(e))
    except Exception as e:
        logger.exception("cron_run_failed", error=error_message(e))
        return JSONResponse(
            {
                "success": False,
                "error": error_message(e),
                "timestamp": datetime.now(UTC).isoformat(),
            },
            status_code=500,
        )

    return camel_json(summary_response(summary))


@router.get("/jobs")
async def list_cron_jobs(
    registry: CronRegistryDep,
    cron_secret: CronSecretDep,
    authorization: str | None = None,
) -> JSONResponse:
    """List registered jobs in registration order."""
    denied = authorize(authorization, cron_secret)
    if denied is not None:
        return denied

    jobs = [
        CronJobResponse(
            id=job.id, name=job.name, description=job.description, schedule=job.schedule
        ).model_dump(by_alias=True)
        for job in registry.get_all_jobs()
    ]
    return JSONResponse({"jobs": jobs})


@router.get("/executions")
async def list_cron_executions(
    executions: ExecutionServiceDep,
    cron_secret: CronSecretDep,
    authorization: str | None = None,
    job: str | None = None,
    org: str | None = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> JSONResponse:
    """List recent execution records, newest first."""
    denied = authorize(authorization, cron_secret)
    if denied is not None:
        return denied

    organization_id = None
    if org:
        organization_id = parse_organization_id(org)
        if organization_id is None:
            return error_response(400, f"Invalid organization ID '{org}'")

    try:
        records = await executions.list_executions(
            job_id=job, organization_id=organization_id, limit=limit
        )
    except StorageUnavailable as e:
        logger.error("cron_executions_unavailable", error=str(e))
        return error_response(500, str(e))

    return JSONResponse(
        {
            "executions": [
                CronExecutionResponse(
                    id=r.id,
                    job_id=r.job_id,
                    job_name=r.job_name,
                    organization_id=r.organization_id,
                    status=r.status.value,
                    notifications_created=r.notifications_created,
                    metadata=r.metadata,
                    error_message=r.error_message,
                    started_at=r.started_at,
                    completed_at=r.completed_at,
                ).model_dump(mode="json", by_alias=True)
                for r in records
            ]
        }
    )
