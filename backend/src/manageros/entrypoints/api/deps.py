"""Dependency injection and application lifespan management."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Request

from manageros.adapters.db.app_db import AppDatabase
from manageros.cron.execution_service import CronJobExecutionService
from manageros.cron.registry import CronJobRegistry, build_default_registry
from manageros.cron.runner import CronRunner
from manageros.services.notification import NotificationService
from manageros.services.organization import OrganizationService

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.database_url = os.getenv("DATABASE_URL", "postgresql://localhost:5432/manageros")
        # Shared secret for the cron trigger; unset means the endpoint refuses to run
        self.cron_secret = os.getenv("CRON_SECRET") or None
        self.cron_max_concurrency = int(os.getenv("CRON_MAX_CONCURRENCY", "1"))


settings = Settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Database connection pool setup
    - Cron job registry and runner wiring
    - Notification and organization services
    """
    app_db = AppDatabase(settings.database_url)
    await app_db.connect()

    registry = build_default_registry(app_db)
    execution_service = CronJobExecutionService(app_db)

    app.state.settings = settings
    app.state.app_db = app_db
    app.state.cron_registry = registry
    app.state.execution_service = execution_service
    app.state.cron_runner = CronRunner(
        app_db,
        registry,
        execution_service,
        max_concurrency=settings.cron_max_concurrency,
    )
    app.state.notification_service = NotificationService(app_db)
    app.state.organization_service = OrganizationService(app_db)

    if not settings.cron_secret:
        logger.warning("cron_secret_not_configured")

    logger.info("cron_jobs_registered", jobs=[job.id for job in registry.get_all_jobs()])

    yield

    await app_db.close()


def get_app_db(request: Request) -> AppDatabase:
    """Get the application database from app state.

    Args:
        request: The current request.

    Returns:
        The configured AppDatabase.
    """
    app_db: AppDatabase = request.app.state.app_db
    return app_db


def get_cron_secret(request: Request) -> str | None:
    """Get the configured cron secret, or None if it is not set."""
    return request.app.state.settings.cron_secret


def get_cron_registry(request: Request) -> CronJobRegistry:
    """Get the cron job registry from app state."""
    registry: CronJobRegistry = request.app.state.cron_registry
    return registry


def get_cron_runner(request: Request) -> CronRunner:
    """Get the cron runner from app state."""
    runner: CronRunner = request.app.state.cron_runner
    return runner


def get_execution_service(request: Request) -> CronJobExecutionService:
    """Get the cron execution service from app state."""
    service: CronJobExecutionService = request.app.state.execution_service
    return service


def get_notification_service(request: Request) -> NotificationService:
    """Get the notification service from app state."""
    service: NotificationService = request.app.state.notification_service
    return service


def get_organization_service(request: Request) -> OrganizationService:
    """Get the organization service from app state."""
    service: OrganizationService = request.app.state.organization_service
    return service
