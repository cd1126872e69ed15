"""Registry of notification cron jobs.

The registry is an ordinary object built at startup and handed to whatever
runs jobs (the HTTP endpoint, the CLI). Tests build their own registry with
fake jobs.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from manageros.adapters.db.app_db import AppDatabase
from manageros.core.exceptions import JobNotFound
from manageros.cron.types import CronJob, JobContext, JobResult

logger = structlog.get_logger()


class CronJobRegistry:
    """Maps stable job ids to job instances, preserving registration order."""

    def __init__(self, jobs: Iterable[CronJob] = ()) -> None:
        """Create a registry and register ``jobs`` in order.

        Args:
            jobs: Jobs to register.

        Raises:
            ValueError: If two jobs share an id.
        """
        self._jobs: dict[str, CronJob] = {}
        for job in jobs:
            self.register(job)

    def register(self, job: CronJob) -> None:
        """Register a job.

        Args:
            job: The job to register.

        Raises:
            ValueError: If a job with the same id is already registered.
        """
        if job.id in self._jobs:
            raise ValueError(f"Job with ID '{job.id}' is already registered")
        self._jobs[job.id] = job

    def get_job(self, job_id: str) -> CronJob | None:
        """Look up a job by id, returning None if it is unknown."""
        return self._jobs.get(job_id)

    def require_job(self, job_id: str) -> CronJob:
        """Look up a job by id.

        Raises:
            JobNotFound: If the id is not registered.
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def get_all_jobs(self) -> list[CronJob]:
        """Return a snapshot of all jobs in registration order."""
        return list(self._jobs.values())

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    async def execute_job(self, job_id: str, context: JobContext) -> JobResult:
        """Run a job for one organization.

        Errors raised by the job propagate to the caller unchanged.

        Raises:
            JobNotFound: If the id is not registered.
        """
        job = self.require_job(job_id)
        logger.debug(
            "cron_job_invoked",
            job_id=job_id,
            organization_id=str(context.organization_id),
        )
        return await job.execute(context)


def build_default_registry(db: AppDatabase) -> CronJobRegistry:
    """Build the registry with every job ManagerOS ships."""
    from manageros.cron.jobs import (
        ActivityMonitoringJob,
        BirthdayNotificationJob,
        OverdueTasksNotificationJob,
    )

    return CronJobRegistry(
        [
            BirthdayNotificationJob(db),
            ActivityMonitoringJob(db),
            OverdueTasksNotificationJob(db),
        ]
    )
