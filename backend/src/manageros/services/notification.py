"""Notification service."""

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import structlog

from manageros.adapters.db.app_db import AppDatabase
from manageros.adapters.db.tenant_scope import OrganizationScope
from manageros.core.tenancy import Principal, resolve_organization_id
from manageros.models import NotificationResponseStatus, NotificationType

logger = structlog.get_logger()


@dataclass
class NotificationData:
    """A notification to be created.

    ``user_id`` targets a single user; leaving it empty makes the
    notification visible to the whole organization.
    """

    title: str
    message: str
    organization_id: UUID
    type: NotificationType = NotificationType.INFO
    user_id: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class NotificationPage:
    """A page of notifications for one user."""

    notifications: list[dict[str, Any]]
    total_count: int
    total_pages: int
    current_page: int


class NotificationService:
    """Creates and reads in-app notifications.

    User-facing methods take the acting ``Principal`` and resolve its
    organization before touching data. ``create_system_notification`` is for
    background jobs, which carry the organization in the notification itself.
    """

    def __init__(self, db: AppDatabase):
        self.db = db

    async def create_system_notification(self, data: NotificationData) -> dict[str, Any]:
        """Create a notification on behalf of the system."""
        scope = self.db.for_organization(data.organization_id)
        return await scope.create_notification(
            title=data.title,
            message=data.message,
            type=data.type.value,
            user_id=data.user_id,
            metadata=data.metadata,
        )

    async def create_notification(
        self,
        principal: Principal | None,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        user_id: UUID | None = None,
    ) -> dict[str, Any]:
        """Create a notification in the principal's organization.

        Raises:
            Unauthenticated: If there is no principal.
            NoOrganization: If the principal has no organization.
            NotFoundInOrganization: If ``user_id`` is outside the organization.
        """
        organization_id = resolve_organization_id(principal)
        return await self.create_system_notification(
            NotificationData(
                title=title,
                message=message,
                type=type,
                organization_id=organization_id,
                user_id=user_id,
            )
        )

    async def list_notifications(
        self, principal: Principal | None, page: int = 1, limit: int = 20
    ) -> NotificationPage:
        """List the principal's notifications, newest first."""
        scope, user_id = self._scope_for(principal)

        offset = (page - 1) * limit
        notifications = await scope.list_notifications_for_user(
            user_id, limit=limit, offset=offset
        )
        total = await scope.count_notifications_for_user(user_id)
        pages = (total + limit - 1) // limit if total > 0 else 1

        return NotificationPage(
            notifications=notifications,
            total_count=total,
            total_pages=pages,
            current_page=page,
        )

    async def list_unread(
        self, principal: Principal | None, limit: int = 5
    ) -> list[dict[str, Any]]:
        """List the principal's latest unread notifications."""
        scope, user_id = self._scope_for(principal)
        return await scope.list_notifications_for_user(user_id, limit=limit, unread_only=True)

    async def unread_count(self, principal: Principal | None) -> int:
        """Count the principal's unread notifications."""
        scope, user_id = self._scope_for(principal)
        return await scope.count_notifications_for_user(user_id, unread_only=True)

    async def mark_as_read(
        self, principal: Principal | None, notification_id: UUID
    ) -> dict[str, Any]:
        """Mark a notification as read for the principal."""
        return await self._respond(principal, notification_id, NotificationResponseStatus.READ)

    async def mark_as_dismissed(
        self, principal: Principal | None, notification_id: UUID
    ) -> dict[str, Any]:
        """Mark a notification as dismissed for the principal."""
        return await self._respond(
            principal, notification_id, NotificationResponseStatus.DISMISSED
        )

    async def _respond(
        self,
        principal: Principal | None,
        notification_id: UUID,
        status: NotificationResponseStatus,
    ) -> dict[str, Any]:
        scope, user_id = self._scope_for(principal)
        response = await scope.respond_to_notification(notification_id, user_id, status)
        logger.info(
            "notification_response_recorded",
            notification_id=str(notification_id),
            user_id=str(user_id),
            status=status.value,
        )
        return response

    def _scope_for(self, principal: Principal | None) -> tuple[OrganizationScope, UUID]:
        """Resolve the principal's organization scope and user id."""
        organization_id = resolve_organization_id(principal)
        assert principal is not None
        return self.db.for_organization(organization_id), principal.user_id
