"""Runs registered cron jobs across organizations and summarizes the outcome."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

import structlog

from manageros.adapters.db.app_db import AppDatabase
from manageros.core.exceptions import OrganizationNotFound
from manageros.cron.execution_service import CronJobExecutionService
from manageros.cron.registry import CronJobRegistry
from manageros.cron.types import CronJob, JobContext

logger = structlog.get_logger()


@dataclass
class JobRunResult:
    """Outcome of one job for one organization."""

    job_id: str
    job_name: str
    organization_id: UUID
    success: bool
    notifications_created: int
    error: str | None = None


@dataclass
class CronRunSummary:
    """Aggregate over every (job, organization) pair of a run."""

    total_jobs: int = 0
    successful_jobs: int = 0
    failed_jobs: int = 0
    total_notifications: int = 0
    results: list[JobRunResult] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: list[JobRunResult]) -> "CronRunSummary":
        """Aggregate per-pair results. Failed pairs contribute no notifications."""
        return cls(
            total_jobs=len(results),
            successful_jobs=sum(1 for r in results if r.success),
            failed_jobs=sum(1 for r in results if not r.success),
            total_notifications=sum(r.notifications_created for r in results if r.success),
            results=results,
        )


def error_message(error: BaseException) -> str:
    """Human-readable message for an exception."""
    return str(error) or type(error).__name__


class CronRunner:
    """Runs jobs for organizations, recording one execution per pair.

    Organizations are the outer loop (database order) and jobs the inner loop
    (registration order). A failing pair is recorded and reported without
    affecting its siblings. With ``max_concurrency`` above 1 the pairs run as
    independent tasks bounded by a semaphore; results keep the sequential
    order either way.
    """

    def __init__(
        self,
        db: AppDatabase,
        registry: CronJobRegistry,
        executions: CronJobExecutionService,
        max_concurrency: int = 1,
    ) -> None:
        """Initialize the runner.

        Args:
            db: Application database, used to enumerate organizations.
            registry: Jobs available to run.
            executions: Execution tracking service.
            max_concurrency: Maximum number of pairs in flight at once.
        """
        self.db = db
        self.registry = registry
        self.executions = executions
        self.max_concurrency = max(1, max_concurrency)

    def resolve_jobs(self, job_id: str | None = None) -> list[CronJob]:
        """Jobs targeted by a run.

        Raises:
            JobNotFound: If ``job_id`` is given and not registered.
        """
        if job_id:
            return [self.registry.require_job(job_id)]
        return self.registry.get_all_jobs()

    async def resolve_organizations(self, organization_id: UUID | None = None) -> list[UUID]:
        """Organizations targeted by a run.

        Raises:
            OrganizationNotFound: If ``organization_id`` is given and does not exist.
        """
        if organization_id:
            if await self.db.get_organization(organization_id) is None:
                raise OrganizationNotFound(organization_id)
            return [organization_id]

        organizations = await self.db.list_organizations()
        return [org["id"] for org in organizations]

    async def run(
        self,
        job_id: str | None = None,
        organization_id: UUID | None = None,
        verbose: bool = False,
    ) -> CronRunSummary:
        """Run the targeted jobs for the targeted organizations.

        The job filter is checked before organizations are enumerated. Errors
        outside the per-pair handling (unknown job, enumeration or execution
        storage failures) propagate and no summary is produced. When pairs run
        concurrently, the first such error is raised only after every other
        pair has finished.
        """
        jobs = self.resolve_jobs(job_id)
        organization_ids = await self.resolve_organizations(organization_id)

        logger.info(
            "cron_run_started",
            job_id=job_id or "all",
            organization_id=str(organization_id) if organization_id else "all",
            jobs=len(jobs),
            organizations=len(organization_ids),
        )

        pairs = [(job, org_id) for org_id in organization_ids for job in jobs]

        if self.max_concurrency == 1:
            results = []
            for job, org_id in pairs:
                results.append(await self.run_job_for_organization(job, org_id, verbose))
        else:
            semaphore = asyncio.Semaphore(self.max_concurrency)

            async def bounded(job: CronJob, org_id: UUID) -> JobRunResult:
                async with semaphore:
                    return await self.run_job_for_organization(job, org_id, verbose)

            # Every pair settles before a storage error aborts the run.
            outcomes = await asyncio.gather(
                *(bounded(job, org_id) for job, org_id in pairs), return_exceptions=True
            )
            errors = [o for o in outcomes if isinstance(o, BaseException)]
            if errors:
                logger.error(
                    "cron_run_aborted",
                    failed_pairs=len(errors),
                    settled_pairs=len(outcomes) - len(errors),
                )
                raise errors[0]
            results = [o for o in outcomes if isinstance(o, JobRunResult)]

        summary = CronRunSummary.from_results(results)
        logger.info(
            "cron_run_completed",
            total_jobs=summary.total_jobs,
            successful_jobs=summary.successful_jobs,
            failed_jobs=summary.failed_jobs,
            total_notifications=summary.total_notifications,
        )
        return summary

    async def run_job_for_organization(
        self, job: CronJob, organization_id: UUID, verbose: bool = False
    ) -> JobRunResult:
        """Run one job for one organization inside its own execution record."""
        execution = await self.executions.start_execution(
            job_id=job.id,
            job_name=job.name,
            organization_id=organization_id,
        )

        try:
            result = await self.registry.execute_job(
                job.id,
                JobContext(started_at=datetime.now(UTC), organization_id=organization_id),
            )
            await self.executions.complete_execution(
                execution.id,
                result.notifications_created,
                result.metadata,
            )
        except Exception as e:
            message = error_message(e)
            await self.executions.fail_execution(execution.id, message, {"error": message})

            log = logger.warning if verbose else logger.debug
            log(
                "cron_job_failed",
                job_id=job.id,
                organization_id=str(organization_id),
                error=message,
            )
            return JobRunResult(
                job_id=job.id,
                job_name=job.name,
                organization_id=organization_id,
                success=False,
                notifications_created=0,
                error=message,
            )

        log = logger.info if verbose else logger.debug
        log(
            "cron_job_succeeded",
            job_id=job.id,
            organization_id=str(organization_id),
            notifications_created=result.notifications_created,
            metadata=result.metadata,
        )
        return JobRunResult(
            job_id=job.id,
            job_name=job.name,
            organization_id=organization_id,
            success=True,
            notifications_created=result.notifications_created,
        )
