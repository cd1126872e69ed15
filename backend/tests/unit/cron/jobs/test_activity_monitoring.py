"""Unit tests for the activity monitoring job."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from manageros.cron.jobs.activity_monitoring import ActivityMonitoringJob
from manageros.cron.types import JobContext
from manageros.models import NotificationType


class TestActivityMonitoringJob:
    """Tests for ActivityMonitoringJob.execute."""

    @pytest.fixture
    def scope(self) -> AsyncMock:
        """Return a mock organization scope."""
        scope = AsyncMock()
        scope.has_recent_notification.return_value = False
        return scope

    @pytest.fixture
    def notifications(self) -> AsyncMock:
        """Return a mock notification service."""
        return AsyncMock()

    @pytest.fixture
    def job(self, scope: AsyncMock, notifications: AsyncMock) -> ActivityMonitoringJob:
        """Return a job wired to the mocks."""
        db = MagicMock()
        db.for_organization.return_value = scope
        return ActivityMonitoringJob(db, notifications)

    async def test_notifies_about_inactive_reports(
        self,
        job: ActivityMonitoringJob,
        scope: AsyncMock,
        notifications: AsyncMock,
        organization_id: uuid.UUID,
        started_at: datetime,
    ) -> None:
        """Inactive reports are listed in one warning per manager."""
        manager_user = uuid.uuid4()
        active_id, idle_id = uuid.uuid4(), uuid.uuid4()
        scope.list_active_reports.return_value = [
            {"manager_id": uuid.uuid4(), "manager_user_id": manager_user,
             "report_id": active_id, "name": "Ana"},
            {"manager_id": uuid.uuid4(), "manager_user_id": manager_user,
             "report_id": idle_id, "name": "Ben"},
        ]
        scope.get_last_activity.side_effect = lambda person_id, since: (
            ("task", since) if person_id == active_id else None
        )

        result = await job.execute(JobContext(started_at=started_at, organization_id=organization_id))

        assert result.notifications_created == 1
        assert result.metadata["inactiveReportsFound"] == 1
        assert result.metadata["daysBack"] == 14
        data = notifications.create_system_notification.call_args.args[0]
        assert data.type == NotificationType.WARNING
        assert data.title == "Team Member Activity Check"
        assert data.metadata["deduplicationKey"] == "activity:Ben"

    async def test_uses_days_back_cutoff(
        self,
        job: ActivityMonitoringJob,
        scope: AsyncMock,
        organization_id: uuid.UUID,
        started_at: datetime,
    ) -> None:
        """Activity is looked up since daysBack days before the start time."""
        scope.list_active_reports.return_value = [
            {"manager_id": uuid.uuid4(), "manager_user_id": uuid.uuid4(),
             "report_id": uuid.uuid4(), "name": "Ana"},
        ]
        scope.get_last_activity.return_value = ("feedback", started_at)
        context = JobContext(
            started_at=started_at, organization_id=organization_id, config={"daysBack": 30}
        )

        result = await job.execute(context)

        assert result.notifications_created == 0
        assert scope.get_last_activity.call_args.args[1] == started_at - timedelta(days=30)

    async def test_skips_recently_notified(
        self,
        job: ActivityMonitoringJob,
        scope: AsyncMock,
        notifications: AsyncMock,
        organization_id: uuid.UUID,
        started_at: datetime,
    ) -> None:
        """Managers warned within the week are skipped."""
        scope.list_active_reports.return_value = [
            {"manager_id": uuid.uuid4(), "manager_user_id": uuid.uuid4(),
             "report_id": uuid.uuid4(), "name": "Ana"},
        ]
        scope.get_last_activity.return_value = None
        scope.has_recent_notification.return_value = True

        result = await job.execute(JobContext(started_at=started_at, organization_id=organization_id))

        assert result.metadata["notificationsSkipped"] == 1
        notifications.create_system_notification.assert_not_called()
        since = scope.has_recent_notification.call_args.args[2]
        assert since == started_at - timedelta(hours=168)

    @pytest.mark.parametrize("days_back", [0, 91])
    async def test_invalid_days_back(
        self,
        job: ActivityMonitoringJob,
        organization_id: uuid.UUID,
        started_at: datetime,
        days_back: int,
    ) -> None:
        """daysBack must be between 1 and 90."""
        context = JobContext(
            started_at=started_at, organization_id=organization_id, config={"daysBack": days_back}
        )

        with pytest.raises(ValueError):
            await job.execute(context)
