"""Activity monitoring job.

Tells managers about reports with no recent tasks, one-on-ones, or feedback.
"""

from datetime import timedelta
from typing import Any
from uuid import UUID

from manageros.cron.types import CronJob, JobContext, JobResult
from manageros.models import NotificationType
from manageros.services.notification import NotificationData

DEDUPLICATION_WINDOW_HOURS = 168


class ActivityMonitoringJob(CronJob):
    """Notifies managers about inactive reports."""

    id = "activity-monitoring"
    name = "Activity Monitoring"
    description = (
        "Notifies managers about team members with no recent tasks, one-on-ones, or feedback"
    )
    schedule = "0 10 * * 1"

    def default_config(self) -> dict[str, Any]:
        return {"daysBack": 14}

    def validate_config(self, config: dict[str, Any]) -> bool:
        days_back = config.get("daysBack")
        return isinstance(days_back, int) and 0 < days_back <= 90

    async def execute(self, context: JobContext) -> JobResult:
        config = self.resolve_config(context)
        days_back: int = config["daysBack"]
        since = context.started_at - timedelta(days=days_back)
        scope = self.scope(context)

        reports_by_manager: dict[UUID, list[dict[str, Any]]] = {}
        for row in await scope.list_active_reports():
            reports_by_manager.setdefault(row["manager_user_id"], []).append(row)

        notifications_created = 0
        inactive_found = 0
        skipped = 0

        for user_id, reports in reports_by_manager.items():
            inactive = []
            for report in reports:
                if await scope.get_last_activity(report["report_id"], since) is None:
                    inactive.append(report["name"])
            if not inactive:
                continue
            inactive_found += len(inactive)

            key = "activity:" + "|".join(sorted(inactive))
            if not await self.should_send_notification(
                scope, user_id, key, DEDUPLICATION_WINDOW_HOURS, now=context.started_at
            ):
                skipped += 1
                continue

            await self.notifications.create_system_notification(
                self.notification_for(context.organization_id, user_id, inactive, days_back, key)
            )
            notifications_created += 1

        return JobResult(
            notifications_created=notifications_created,
            metadata={
                "managersProcessed": len(reports_by_manager),
                "inactiveReportsFound": inactive_found,
                "notificationsSkipped": skipped,
                "daysBack": days_back,
            },
        )

    def notification_for(
        self,
        organization_id: UUID,
        user_id: UUID,
        inactive: list[str],
        days_back: int,
        deduplication_key: str,
    ) -> NotificationData:
        """Build the notification for one manager."""
        if len(inactive) == 1:
            title = "Team Member Activity Check"
            message = (
                f"{inactive[0]} hasn't had any recent activity in the last {days_back} days. "
                "Consider checking in with them."
            )
        else:
            title = "Team Activity Check"
            message = (
                f"{len(inactive)} team members haven't had recent activity in the last "
                f"{days_back} days: {', '.join(inactive)}. Consider checking in with them."
            )

        return self.build_notification(
            title=title,
            message=message,
            type=NotificationType.WARNING,
            organization_id=organization_id,
            user_id=user_id,
            deduplication_key=deduplication_key,
            metadata={"daysBack": days_back, "inactiveReports": inactive},
        )
