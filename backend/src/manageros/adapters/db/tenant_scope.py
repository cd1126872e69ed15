"""Organization-scoped repository.

An ``OrganizationScope`` is bound to one organization when it is created.
Every read it issues filters on that organization, every insert stamps it,
and writes that point at a parent record check that the parent lives in the
same organization first.
"""

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from manageros.core.exceptions import NotFoundInOrganization
from manageros.models import CLOSED_TASK_STATUSES, NotificationResponseStatus, PersonStatus

if TYPE_CHECKING:
    from manageros.adapters.db.app_db import AppDatabase

logger = structlog.get_logger()

# Notifications addressed to the user, or to the whole organization
_VISIBLE_TO_USER = "n.organization_id = $1 AND (n.user_id = $2 OR n.user_id IS NULL)"


class OrganizationScope:
    """Data access bound to a single organization."""

    def __init__(self, db: "AppDatabase", organization_id: UUID) -> None:
        """Bind the repository to an organization.

        Args:
            db: Application database.
            organization_id: The tenant every query is constrained to.
        """
        self._db = db
        self._organization_id = organization_id

    @property
    def organization_id(self) -> UUID:
        """The organization this scope is bound to."""
        return self._organization_id

    # Users
    async def get_user(self, user_id: UUID) -> dict[str, Any] | None:
        """Get a user that belongs to this organization."""
        return await self._db.fetch_one(
            """SELECT id, email, name, organization_id FROM users
               WHERE organization_id = $1 AND id = $2""",
            self._organization_id,
            user_id,
        )

    # People
    async def list_report_birthdays(self) -> list[dict[str, Any]]:
        """List reports with a birthday, grouped by managers who have a user account.

        Rows carry ``manager_id``, ``manager_user_id``, ``name`` and ``birthday``
        and are ordered by manager.
        """
        return await self._db.fetch_all(
            """SELECT m.id AS manager_id, m.user_id AS manager_user_id,
                      r.name, r.birthday
               FROM people m
               JOIN people r ON r.manager_id = m.id AND r.organization_id = $1
               WHERE m.organization_id = $1
                 AND m.user_id IS NOT NULL
                 AND r.birthday IS NOT NULL
               ORDER BY m.id, r.name""",
            self._organization_id,
        )

    async def list_active_reports(self) -> list[dict[str, Any]]:
        """List active reports of active managers who have a user account.

        Rows carry ``manager_id``, ``manager_user_id``, ``report_id`` and
        ``name`` and are ordered by manager.
        """
        return await self._db.fetch_all(
            """SELECT m.id AS manager_id, m.user_id AS manager_user_id,
                      r.id AS report_id, r.name
               FROM people m
               JOIN people r ON r.manager_id = m.id AND r.organization_id = $1
               WHERE m.organization_id = $1
                 AND m.status = $2
                 AND r.status = $2
                 AND m.user_id IS NOT NULL
               ORDER BY m.id, r.name""",
            self._organization_id,
            PersonStatus.ACTIVE.value,
        )

    async def get_last_activity(
        self, person_id: UUID, since: datetime
    ) -> tuple[str, datetime] | None:
        """Find the most recent activity for a person since a cutoff.

        Tasks are checked first, then one-on-ones, then feedback.

        Returns:
            ``(activity_type, timestamp)`` or None if the person was inactive.
        """
        task = await self._db.fetch_one(
            """SELECT updated_at FROM tasks
               WHERE organization_id = $1 AND assignee_id = $2
                 AND (updated_at >= $3 OR created_at >= $3)
               ORDER BY updated_at DESC
               LIMIT 1""",
            self._organization_id,
            person_id,
            since,
        )
        if task:
            return "task", task["updated_at"]

        one_on_one = await self._db.fetch_one(
            """SELECT scheduled_at FROM one_on_ones
               WHERE organization_id = $1 AND report_id = $2 AND scheduled_at >= $3
               ORDER BY scheduled_at DESC
               LIMIT 1""",
            self._organization_id,
            person_id,
            since,
        )
        if one_on_one:
            return "one-on-one", one_on_one["scheduled_at"]

        feedback = await self._db.fetch_one(
            """SELECT created_at FROM feedback
               WHERE organization_id = $1 AND about_id = $2 AND created_at >= $3
               ORDER BY created_at DESC
               LIMIT 1""",
            self._organization_id,
            person_id,
            since,
        )
        if feedback:
            return "feedback", feedback["created_at"]

        return None

    # Tasks
    async def list_overdue_tasks(self, due_before: datetime) -> list[dict[str, Any]]:
        """List open tasks due before a cutoff whose assignee has a user account.

        Rows carry ``id``, ``title``, ``due_date`` and ``assignee_user_id``,
        oldest due date first.
        """
        return await self._db.fetch_all(
            """SELECT t.id, t.title, t.due_date, p.user_id AS assignee_user_id
               FROM tasks t
               JOIN people p ON p.id = t.assignee_id AND p.organization_id = $1
               WHERE t.organization_id = $1
                 AND t.due_date < $2
                 AND t.status <> ALL($3::text[])
                 AND p.status = $4
                 AND p.user_id IS NOT NULL
               ORDER BY t.due_date ASC""",
            self._organization_id,
            due_before,
            list(CLOSED_TASK_STATUSES),
            PersonStatus.ACTIVE.value,
        )

    # Notifications
    async def create_notification(
        self,
        title: str,
        message: str,
        type: str = "info",
        user_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a notification in this organization.

        Raises:
            NotFoundInOrganization: If ``user_id`` is not a member of this organization.
        """
        if user_id is not None and await self.get_user(user_id) is None:
            raise NotFoundInOrganization("User", user_id)

        result = await self._db.execute_returning(
            """INSERT INTO notifications (organization_id, user_id, title, message, type, metadata)
               VALUES ($1, $2, $3, $4, $5, $6)
               RETURNING *""",
            self._organization_id,
            user_id,
            title,
            message,
            type,
            json.dumps(metadata or {}),
        )
        if result is None:
            raise RuntimeError("Failed to create notification")

        logger.info(
            "notification_created",
            notification_id=str(result["id"]),
            organization_id=str(self._organization_id),
            user_id=str(user_id) if user_id else None,
        )
        return result

    async def has_recent_notification(
        self, user_id: UUID, deduplication_key: str, since: datetime
    ) -> bool:
        """Check whether a user already got a notification with this key since a cutoff."""
        found = await self._db.fetch_value(
            """SELECT EXISTS (
                   SELECT 1 FROM notifications
                   WHERE organization_id = $1 AND user_id = $2
                     AND metadata->>'deduplicationKey' = $3
                     AND created_at >= $4
               )""",
            self._organization_id,
            user_id,
            deduplication_key,
            since,
        )
        return bool(found)

    async def list_notifications_for_user(
        self,
        user_id: UUID,
        limit: int,
        offset: int = 0,
        unread_only: bool = False,
    ) -> list[dict[str, Any]]:
        """List notifications visible to a user with their response, newest first."""
        return await self._db.fetch_all(
            f"""SELECT n.id, n.title, n.message, n.type, n.created_at,
                       nr.status AS response_status, nr.read_at, nr.dismissed_at
                FROM notifications n
                LEFT JOIN notification_responses nr
                       ON nr.notification_id = n.id AND nr.user_id = $2
                WHERE {_VISIBLE_TO_USER}
                  AND (NOT $5 OR nr.status IS NULL OR nr.status = 'unread')
                ORDER BY n.created_at DESC
                LIMIT $3 OFFSET $4""",
            self._organization_id,
            user_id,
            limit,
            offset,
            unread_only,
        )

    async def count_notifications_for_user(
        self, user_id: UUID, unread_only: bool = False
    ) -> int:
        """Count notifications visible to a user."""
        count = await self._db.fetch_value(
            f"""SELECT COUNT(*)
                FROM notifications n
                LEFT JOIN notification_responses nr
                       ON nr.notification_id = n.id AND nr.user_id = $2
                WHERE {_VISIBLE_TO_USER}
                  AND (NOT $3 OR nr.status IS NULL OR nr.status = 'unread')""",
            self._organization_id,
            user_id,
            unread_only,
        )
        return int(count or 0)

    async def respond_to_notification(
        self,
        notification_id: UUID,
        user_id: UUID,
        status: NotificationResponseStatus,
    ) -> dict[str, Any]:
        """Record a user's read or dismiss response.

        Raises:
            NotFoundInOrganization: If the notification is not visible to the
                user in this organization.
        """
        visible = await self._db.fetch_one(
            f"SELECT n.id FROM notifications n WHERE {_VISIBLE_TO_USER} AND n.id = $3",
            self._organization_id,
            user_id,
            notification_id,
        )
        if not visible:
            raise NotFoundInOrganization("Notification", notification_id)

        timestamp_column = (
            "dismissed_at" if status == NotificationResponseStatus.DISMISSED else "read_at"
        )
        result = await self._db.execute_returning(
            f"""INSERT INTO notification_responses
                    (organization_id, notification_id, user_id, status, {timestamp_column})
                VALUES ($1, $2, $3, $4, NOW())
                ON CONFLICT (notification_id, user_id)
                DO UPDATE SET status = EXCLUDED.status,
                              {timestamp_column} = NOW(),
                              updated_at = NOW()
                RETURNING *""",
            self._organization_id,
            notification_id,
            user_id,
            status.value,
        )
        if result is None:
            raise RuntimeError("Failed to record notification response")
        return result
