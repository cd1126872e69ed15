"""SQLAlchemy models for the application database."""
from manageros.models.base import BaseModel, OrganizationOwned
from manageros.models.organization import Organization
from manageros.models.user import ApiKey, User
from manageros.models.person import Feedback, OneOnOne, Person, PersonStatus
from manageros.models.work import CLOSED_TASK_STATUSES, Initiative, Objective, Task, TaskStatus
from manageros.models.notification import (
    Notification,
    NotificationResponse,
    NotificationResponseStatus,
    NotificationType,
)
from manageros.models.cron_job_execution import CronJobExecution, CronJobExecutionStatus

__all__ = [
    "BaseModel",
    "OrganizationOwned",
    "Organization",
    "User",
    "ApiKey",
    "Person",
    "PersonStatus",
    "OneOnOne",
    "Feedback",
    "Initiative",
    "Objective",
    "Task",
    "TaskStatus",
    "CLOSED_TASK_STATUSES",
    "Notification",
    "NotificationResponse",
    "NotificationResponseStatus",
    "NotificationType",
    "CronJobExecution",
    "CronJobExecutionStatus",
]
