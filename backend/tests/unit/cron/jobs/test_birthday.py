"""Unit tests for the birthday notification job."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from manageros.cron.jobs.birthday import (
    BirthdayNotificationJob,
    find_upcoming_birthdays,
    next_birthday,
)
from manageros.cron.types import JobContext


class TestNextBirthday:
    """Tests for next_birthday."""

    def test_later_this_year(self) -> None:
        """A birthday still ahead falls in the current year."""
        assert next_birthday(date(1990, 8, 1), date(2024, 6, 10)) == date(2024, 8, 1)

    def test_already_passed(self) -> None:
        """A birthday already past this year falls next year."""
        assert next_birthday(date(1990, 1, 5), date(2024, 6, 10)) == date(2025, 1, 5)

    def test_today(self) -> None:
        """A birthday today is today."""
        assert next_birthday(date(1990, 6, 10), date(2024, 6, 10)) == date(2024, 6, 10)

    def test_leap_day_in_common_year(self) -> None:
        """February 29 maps to February 28 outside leap years."""
        assert next_birthday(date(1992, 2, 29), date(2023, 2, 1)) == date(2023, 2, 28)


class TestFindUpcomingBirthdays:
    """Tests for find_upcoming_birthdays."""

    def test_window_is_inclusive(self) -> None:
        """Birthdays exactly days_ahead away are included."""
        reports = [
            {"name": "Ana", "birthday": date(1990, 6, 17)},
            {"name": "Ben", "birthday": date(1990, 6, 18)},
            {"name": "Cy", "birthday": None},
        ]

        upcoming = find_upcoming_birthdays(reports, date(2024, 6, 10), days_ahead=7)

        assert [(b.name, b.days_until) for b in upcoming] == [("Ana", 7)]


class TestBirthdayNotificationJob:
    """Tests for BirthdayNotificationJob.execute."""

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
    def job(self, scope: AsyncMock, notifications: AsyncMock) -> BirthdayNotificationJob:
        """Return a job wired to the mocks."""
        db = MagicMock()
        db.for_organization.return_value = scope
        return BirthdayNotificationJob(db, notifications)

    async def test_notifies_manager_about_single_birthday(
        self,
        job: BirthdayNotificationJob,
        scope: AsyncMock,
        notifications: AsyncMock,
        organization_id: uuid.UUID,
        started_at: datetime,
    ) -> None:
        """One upcoming birthday produces one notification for the manager."""
        manager_user = uuid.uuid4()
        scope.list_report_birthdays.return_value = [
            {"manager_id": uuid.uuid4(), "manager_user_id": manager_user,
             "name": "Ana", "birthday": date(1990, 6, 11)},
        ]

        result = await job.execute(JobContext(started_at=started_at, organization_id=organization_id))

        assert result.notifications_created == 1
        assert result.metadata == {
            "managersProcessed": 1,
            "upcomingBirthdaysFound": 1,
            "notificationsSkipped": 0,
        }
        data = notifications.create_system_notification.call_args.args[0]
        assert data.title == "Birthday Tomorrow!"
        assert data.user_id == manager_user
        assert data.organization_id == organization_id
        assert data.metadata["deduplicationKey"] == "birthday:Ana:1"
        assert data.metadata["jobId"] == "birthday-notification"
        job.db.for_organization.assert_called_once_with(organization_id)

    async def test_multiple_birthdays_with_one_today(
        self,
        job: BirthdayNotificationJob,
        scope: AsyncMock,
        notifications: AsyncMock,
        organization_id: uuid.UUID,
        started_at: datetime,
    ) -> None:
        """Several birthdays are combined into one notification."""
        manager_user = uuid.uuid4()
        scope.list_report_birthdays.return_value = [
            {"manager_id": uuid.uuid4(), "manager_user_id": manager_user,
             "name": "Ana", "birthday": date(1990, 6, 10)},
            {"manager_id": uuid.uuid4(), "manager_user_id": manager_user,
             "name": "Ben", "birthday": date(1988, 6, 14)},
        ]

        result = await job.execute(JobContext(started_at=started_at, organization_id=organization_id))

        assert result.notifications_created == 1
        data = notifications.create_system_notification.call_args.args[0]
        assert data.title == "Birthdays This Week!"
        assert "Ana, Ben" in data.message

    async def test_skips_recently_notified(
        self,
        job: BirthdayNotificationJob,
        scope: AsyncMock,
        notifications: AsyncMock,
        organization_id: uuid.UUID,
        started_at: datetime,
    ) -> None:
        """A manager notified within the window is skipped."""
        scope.list_report_birthdays.return_value = [
            {"manager_id": uuid.uuid4(), "manager_user_id": uuid.uuid4(),
             "name": "Ana", "birthday": date(1990, 6, 12)},
        ]
        scope.has_recent_notification.return_value = True

        result = await job.execute(JobContext(started_at=started_at, organization_id=organization_id))

        assert result.notifications_created == 0
        assert result.metadata["notificationsSkipped"] == 1
        notifications.create_system_notification.assert_not_called()

    async def test_no_birthdays_in_window(
        self,
        job: BirthdayNotificationJob,
        scope: AsyncMock,
        notifications: AsyncMock,
        organization_id: uuid.UUID,
        started_at: datetime,
    ) -> None:
        """Birthdays outside the window produce nothing."""
        scope.list_report_birthdays.return_value = [
            {"manager_id": uuid.uuid4(), "manager_user_id": uuid.uuid4(),
             "name": "Ana", "birthday": date(1990, 9, 1)},
        ]

        result = await job.execute(JobContext(started_at=started_at, organization_id=organization_id))

        assert result.notifications_created == 0
        assert result.metadata["upcomingBirthdaysFound"] == 0
        notifications.create_system_notification.assert_not_called()

    async def test_invalid_config_rejected(
        self, job: BirthdayNotificationJob, organization_id: uuid.UUID, started_at: datetime
    ) -> None:
        """daysAhead outside 0-31 is rejected."""
        context = JobContext(
            started_at=started_at, organization_id=organization_id, config={"daysAhead": 60}
        )

        with pytest.raises(ValueError):
            await job.execute(context)
