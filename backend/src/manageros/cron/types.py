"""Cron job contract shared by the registry, the runner, and job implementations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from manageros.adapters.db.app_db import AppDatabase
from manageros.adapters.db.tenant_scope import OrganizationScope
from manageros.models import NotificationType
from manageros.services.notification import NotificationData, NotificationService


@dataclass(frozen=True)
class JobContext:
    """Input handed to a job for one organization."""

    started_at: datetime
    organization_id: UUID
    config: dict[str, Any] | None = None


@dataclass
class JobResult:
    """Outcome of a successful job run.

    ``metadata`` must hold JSON-serializable values only; it is stored on the
    execution record.
    """

    notifications_created: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.notifications_created < 0:
            raise ValueError("notifications_created must be >= 0")


class CronJob(ABC):
    """A named unit of notification-generation logic run once per organization.

    Subclasses set ``id``, ``name``, ``description`` and ``schedule`` and
    implement ``execute``. Errors raised by ``execute`` are recorded as a
    failed execution by the runner.
    """

    id: str
    name: str
    description: str = ""
    # Informational; the external scheduler owns the actual timing
    schedule: str = ""

    def __init__(self, db: AppDatabase, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    @abstractmethod
    async def execute(self, context: JobContext) -> JobResult:
        """Run the job for ``context.organization_id``."""

    def default_config(self) -> dict[str, Any]:
        """Configuration used when the context carries none."""
        return {}

    def validate_config(self, config: dict[str, Any]) -> bool:
        """Return True if ``config`` is acceptable for this job."""
        return True

    def resolve_config(self, context: JobContext) -> dict[str, Any]:
        """Merge the context config over the defaults and validate it.

        Raises:
            ValueError: If the merged configuration is invalid.
        """
        config = {**self.default_config(), **(context.config or {})}
        if not self.validate_config(config):
            raise ValueError(f"Invalid configuration for job '{self.id}': {config}")
        return config

    def scope(self, context: JobContext) -> OrganizationScope:
        """Data access bound to the context's organization."""
        return self.db.for_organization(context.organization_id)

    async def should_send_notification(
        self,
        scope: OrganizationScope,
        user_id: UUID,
        deduplication_key: str,
        window_hours: int,
        now: datetime | None = None,
    ) -> bool:
        """Return False if the user got a notification with this key inside the window."""
        since = (now or datetime.now(UTC)) - timedelta(hours=window_hours)
        return not await scope.has_recent_notification(user_id, deduplication_key, since)

    def build_notification(
        self,
        *,
        title: str,
        message: str,
        organization_id: UUID,
        user_id: UUID,
        deduplication_key: str,
        type: NotificationType = NotificationType.INFO,
        metadata: dict[str, Any] | None = None,
    ) -> NotificationData:
        """Build a notification tagged with its job and deduplication key."""
        return NotificationData(
            title=title,
            message=message,
            type=type,
            organization_id=organization_id,
            user_id=user_id,
            metadata={
                **(metadata or {}),
                "deduplicationKey": deduplication_key,
                "jobId": self.id,
            },
        )
