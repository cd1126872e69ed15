"""Notification jobs shipped with ManagerOS."""

from manageros.cron.jobs.activity_monitoring import ActivityMonitoringJob
from manageros.cron.jobs.birthday import BirthdayNotificationJob
from manageros.cron.jobs.overdue_tasks import OverdueTasksNotificationJob

__all__ = [
    "ActivityMonitoringJob",
    "BirthdayNotificationJob",
    "OverdueTasksNotificationJob",
]
