"""Birthday notification job.

Tells managers about upcoming birthdays of their reports.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

import structlog

from manageros.cron.types import CronJob, JobContext, JobResult
from manageros.services.notification import NotificationData

logger = structlog.get_logger()

DEDUPLICATION_WINDOW_HOURS = 24


@dataclass(frozen=True)
class UpcomingBirthday:
    """A report's next birthday."""

    name: str
    birthday: date
    days_until: int


def next_birthday(birthday: date, today: date) -> date:
    """The next occurrence of ``birthday`` on or after ``today``.

    February 29 birthdays fall on February 28 in non-leap years.
    """

    def in_year(year: int) -> date:
        try:
            return birthday.replace(year=year)
        except ValueError:
            return date(year, 2, 28)

    upcoming = in_year(today.year)
    if upcoming < today:
        upcoming = in_year(today.year + 1)
    return upcoming


def find_upcoming_birthdays(
    reports: list[dict[str, Any]], today: date, days_ahead: int
) -> list[UpcomingBirthday]:
    """Reports whose next birthday is within ``days_ahead`` days of ``today``."""
    upcoming = []
    for report in reports:
        if not report.get("birthday"):
            continue
        occurrence = next_birthday(report["birthday"], today)
        days_until = (occurrence - today).days
        if days_until <= days_ahead:
            upcoming.append(
                UpcomingBirthday(name=report["name"], birthday=occurrence, days_until=days_until)
            )
    return upcoming


class BirthdayNotificationJob(CronJob):
    """Notifies managers about upcoming birthdays of their reports."""

    id = "birthday-notification"
    name = "Birthday Notifications"
    description = "Notifies managers about upcoming birthdays of their direct reports"
    schedule = "0 9 * * *"

    def default_config(self) -> dict[str, Any]:
        return {"daysAhead": 7}

    def validate_config(self, config: dict[str, Any]) -> bool:
        days_ahead = config.get("daysAhead")
        return isinstance(days_ahead, int) and 0 <= days_ahead <= 31

    async def execute(self, context: JobContext) -> JobResult:
        config = self.resolve_config(context)
        days_ahead: int = config["daysAhead"]
        today = context.started_at.date()
        scope = self.scope(context)

        reports_by_manager: dict[UUID, list[dict[str, Any]]] = {}
        for row in await scope.list_report_birthdays():
            reports_by_manager.setdefault(row["manager_user_id"], []).append(row)

        notifications_created = 0
        birthdays_found = 0
        skipped = 0

        for user_id, reports in reports_by_manager.items():
            upcoming = find_upcoming_birthdays(reports, today, days_ahead)
            if not upcoming:
                continue
            birthdays_found += len(upcoming)

            key = self.deduplication_key(upcoming)
            if not await self.should_send_notification(
                scope, user_id, key, DEDUPLICATION_WINDOW_HOURS, now=context.started_at
            ):
                skipped += 1
                continue

            await self.notifications.create_system_notification(
                self.notification_for(context.organization_id, user_id, upcoming, days_ahead, key)
            )
            notifications_created += 1

        logger.debug(
            "birthday_job_finished",
            organization_id=str(context.organization_id),
            notifications_created=notifications_created,
        )
        return JobResult(
            notifications_created=notifications_created,
            metadata={
                "managersProcessed": len(reports_by_manager),
                "upcomingBirthdaysFound": birthdays_found,
                "notificationsSkipped": skipped,
            },
        )

    def deduplication_key(self, upcoming: list[UpcomingBirthday]) -> str:
        """Key identifying this exact set of birthdays and distances."""
        parts = [f"{b.name}:{b.days_until}" for b in sorted(upcoming, key=lambda b: b.name)]
        return "birthday:" + "|".join(parts)

    def notification_for(
        self,
        organization_id: UUID,
        user_id: UUID,
        upcoming: list[UpcomingBirthday],
        days_ahead: int,
        deduplication_key: str,
    ) -> NotificationData:
        """Build the notification for one manager."""
        if len(upcoming) == 1:
            person = upcoming[0]
            if person.days_until == 0:
                title = "Birthday Today!"
                message = f"{person.name} has a birthday today!"
            elif person.days_until == 1:
                title = "Birthday Tomorrow!"
                message = f"{person.name} has a birthday tomorrow!"
            else:
                title = "Upcoming Birthday"
                message = (
                    f"{person.name} has a birthday in {person.days_until} days "
                    f"({person.birthday.isoformat()})"
                )
        else:
            names = ", ".join(b.name for b in upcoming)
            if any(b.days_until == 0 for b in upcoming):
                title = "Birthdays This Week!"
                message = f"Multiple team members have birthdays this week: {names}"
            else:
                title = "Upcoming Birthdays"
                message = (
                    f"Multiple team members have birthdays in the next {days_ahead} days: {names}"
                )

        return self.build_notification(
            title=title,
            message=message,
            organization_id=organization_id,
            user_id=user_id,
            deduplication_key=deduplication_key,
            metadata={
                "upcomingBirthdays": [
                    {
                        "name": b.name,
                        "birthday": b.birthday.isoformat(),
                        "daysUntil": b.days_until,
                    }
                    for b in upcoming
                ]
            },
        )
