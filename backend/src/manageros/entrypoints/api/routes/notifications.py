"""API routes for in-app notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from manageros.core.exceptions import NotFoundInOrganization
from manageros.entrypoints.api.deps import get_notification_service
from manageros.entrypoints.api.middleware.auth import OrganizationPrincipalDep
from manageros.models import NotificationType
from manageros.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])

NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


class NotificationCreate(BaseModel):
    """Request body for creating a notification."""

    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
    user_id: UUID | None = None


class NotificationResponse(BaseModel):
    """A notification as seen by the current user."""

    id: UUID
    title: str
    message: str
    type: str
    created_at: datetime
    response_status: str | None = None
    read_at: datetime | None = None
    dismissed_at: datetime | None = None


class NotificationListResponse(BaseModel):
    """Paginated list of notifications."""

    notifications: list[NotificationResponse]
    total_count: int
    total_pages: int
    current_page: int


class UnreadCountResponse(BaseModel):
    """Number of unread notifications."""

    count: int


class NotificationActionResponse(BaseModel):
    """Result of reading or dismissing a notification."""

    notification_id: UUID
    status: str


def _to_response(row: dict[str, Any]) -> NotificationResponse:
    return NotificationResponse(
        id=row["id"],
        title=row["title"],
        message=row["message"],
        type=row["type"],
        created_at=row["created_at"],
        response_status=row.get("response_status"),
        read_at=row.get("read_at"),
        dismissed_at=row.get("dismissed_at"),
    )


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    principal: OrganizationPrincipalDep,
    service: NotificationServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> NotificationListResponse:
    """List the current user's notifications, newest first."""
    result = await service.list_notifications(principal, page=page, limit=limit)
    return NotificationListResponse(
        notifications=[_to_response(row) for row in result.notifications],
        total_count=result.total_count,
        total_pages=result.total_pages,
        current_page=result.current_page,
    )


@router.get("/unread", response_model=list[NotificationResponse])
async def list_unread_notifications(
    principal: OrganizationPrincipalDep,
    service: NotificationServiceDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
) -> list[NotificationResponse]:
    """List the latest notifications the current user has not responded to."""
    rows = await service.list_unread(principal, limit=limit)
    return [_to_response(row) for row in rows]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    principal: OrganizationPrincipalDep,
    service: NotificationServiceDep,
) -> UnreadCountResponse:
    """Count the current user's unread notifications."""
    return UnreadCountResponse(count=await service.unread_count(principal))


@router.post("", status_code=201, response_model=NotificationResponse)
async def create_notification(
    body: NotificationCreate,
    principal: OrganizationPrincipalDep,
    service: NotificationServiceDep,
) -> NotificationResponse:
    """Create a notification in the current user's organization.

    Leaving ``user_id`` empty makes it visible to the whole organization.
    """
    try:
        row = await service.create_notification(
            principal,
            title=body.title,
            message=body.message,
            type=body.type,
            user_id=body.user_id,
        )
    except NotFoundInOrganization as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return _to_response(row)


@router.post("/{notification_id}/read", response_model=NotificationActionResponse)
async def mark_notification_read(
    notification_id: UUID,
    principal: OrganizationPrincipalDep,
    service: NotificationServiceDep,
) -> NotificationActionResponse:
    """Mark a notification as read."""
    try:
        response = await service.mark_as_read(principal, notification_id)
    except NotFoundInOrganization as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return NotificationActionResponse(notification_id=notification_id, status=response["status"])


@router.post("/{notification_id}/dismiss", response_model=NotificationActionResponse)
async def dismiss_notification(
    notification_id: UUID,
    principal: OrganizationPrincipalDep,
    service: NotificationServiceDep,
) -> NotificationActionResponse:
    """Dismiss a notification."""
    try:
        response = await service.mark_as_dismissed(principal, notification_id)
    except NotFoundInOrganization as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return NotificationActionResponse(notification_id=notification_id, status=response["status"])
