"""Notification cron pipeline: job registry, execution tracking, and runner."""

from manageros.cron.execution_service import CronJobExecution, CronJobExecutionService
from manageros.cron.registry import CronJobRegistry, build_default_registry
from manageros.cron.runner import CronRunner, CronRunSummary, JobRunResult
from manageros.cron.types import CronJob, JobContext, JobResult

__all__ = [
    "CronJob",
    "CronJobExecution",
    "CronJobExecutionService",
    "CronJobRegistry",
    "CronRunSummary",
    "CronRunner",
    "JobContext",
    "JobResult",
    "JobRunResult",
    "build_default_registry",
]
