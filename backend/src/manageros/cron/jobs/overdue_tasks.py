"""Overdue tasks notification job."""

from datetime import datetime
from typing import Any
from uuid import UUID

from manageros.cron.types import CronJob, JobContext, JobResult
from manageros.models import NotificationType
from manageros.services.notification import NotificationData

DEDUPLICATION_WINDOW_HOURS = 24


def start_of_day(moment: datetime) -> datetime:
    """Midnight at the start of ``moment``'s day, keeping its time zone."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


class OverdueTasksNotificationJob(CronJob):
    """Notifies assignees about open tasks past their due date."""

    id = "overdue-tasks-notification"
    name = "Overdue Tasks Notification"
    description = "Notifies users about tasks that have passed their due dates"
    schedule = "0 9 * * *"

    async def execute(self, context: JobContext) -> JobResult:
        scope = self.scope(context)
        tasks = await scope.list_overdue_tasks(start_of_day(context.started_at))

        tasks_by_user: dict[UUID, list[dict[str, Any]]] = {}
        for task in tasks:
            tasks_by_user.setdefault(task["assignee_user_id"], []).append(task)

        notifications_created = 0
        skipped = 0

        for user_id, user_tasks in tasks_by_user.items():
            key = "overdue-tasks:" + "|".join(sorted(str(t["id"]) for t in user_tasks))
            if not await self.should_send_notification(
                scope, user_id, key, DEDUPLICATION_WINDOW_HOURS, now=context.started_at
            ):
                skipped += 1
                continue

            await self.notifications.create_system_notification(
                self.notification_for(context.organization_id, user_id, user_tasks, key)
            )
            notifications_created += 1

        return JobResult(
            notifications_created=notifications_created,
            metadata={
                "overdueTasksFound": len(tasks),
                "usersWithOverdueTasks": len(tasks_by_user),
                "notificationsSkipped": skipped,
            },
        )

    def notification_for(
        self,
        organization_id: UUID,
        user_id: UUID,
        tasks: list[dict[str, Any]],
        deduplication_key: str,
    ) -> NotificationData:
        """Build the notification for one assignee."""
        if len(tasks) == 1:
            title = "Overdue Task"
            message = f'Task "{tasks[0]["title"]}" is overdue'
        else:
            title = "Overdue Tasks"
            message = f"You have {len(tasks)} overdue tasks"

        return self.build_notification(
            title=title,
            message=message,
            type=NotificationType.WARNING,
            organization_id=organization_id,
            user_id=user_id,
            deduplication_key=deduplication_key,
            metadata={
                "overdueTaskIds": [str(t["id"]) for t in tasks],
                "taskCount": len(tasks),
                "tasks": [
                    {
                        "id": str(t["id"]),
                        "title": t["title"],
                        "dueDate": t["due_date"].isoformat(),
                    }
                    for t in tasks
                ],
            },
        )
