"""Run notification cron jobs from the command line.

Run via: python -m manageros.jobs.run_cron_jobs [--job ID] [--org ID] [--verbose] [--list]
"""

import argparse
import asyncio
import os
import sys
from uuid import UUID

import structlog

from manageros.adapters.db.app_db import AppDatabase
from manageros.core.exceptions import JobNotFound, OrganizationNotFound
from manageros.cron.execution_service import CronJobExecutionService
from manageros.cron.registry import build_default_registry
from manageros.cron.runner import CronRunner, CronRunSummary, error_message

logger = structlog.get_logger()

DEFAULT_DATABASE_URL = "postgresql://localhost:5432/manageros"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="run-cron-jobs",
        description="Run notification jobs for every organization.",
    )
    parser.add_argument("--job", help="only run the job with this ID")
    parser.add_argument("--org", type=UUID, help="only run for this organization ID")
    parser.add_argument("--verbose", action="store_true", help="log per-job metadata")
    parser.add_argument("--list", action="store_true", help="list registered jobs and exit")
    return parser


def print_summary(summary: CronRunSummary) -> None:
    """Print one line per (job, organization) pair followed by totals."""
    for result in summary.results:
        if result.success:
            print(
                f"OK    {result.job_id} org={result.organization_id} "
                f"notifications={result.notifications_created}"
            )
        else:
            print(f"FAIL  {result.job_id} org={result.organization_id} error={result.error}")

    print(
        f"{summary.total_jobs} runs, {summary.successful_jobs} succeeded, "
        f"{summary.failed_jobs} failed, {summary.total_notifications} notifications created"
    )


async def main(argv: list[str] | None = None) -> int:
    """Run cron jobs and return the process exit code."""
    args = build_parser().parse_args(argv)

    db = AppDatabase(os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL))
    registry = build_default_registry(db)

    if args.list:
        for job in registry.get_all_jobs():
            print(f"{job.id:<22} {job.schedule:<12} {job.name}")
        return 0

    await db.connect()
    try:
        runner = CronRunner(
            db,
            registry,
            CronJobExecutionService(db),
            max_concurrency=int(os.getenv("CRON_MAX_CONCURRENCY", "1")),
        )
        summary = await runner.run(job_id=args.job, organization_id=args.org, verbose=args.verbose)
    except (JobNotFound, OrganizationNotFound) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("cron_run_failed", error=error_message(e))
        print(f"Error: {error_message(e)}", file=sys.stderr)
        return 1
    finally:
        await db.close()

    print_summary(summary)
    return 0


def cli() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
