"""In-app notification models."""

import enum
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from manageros.models.base import BaseModel, OrganizationOwned


class NotificationType(str, enum.Enum):
    """Notification severity."""

    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"


class NotificationResponseStatus(str, enum.Enum):
    """How a user has responded to a notification."""

    UNREAD = "unread"
    READ = "read"
    DISMISSED = "dismissed"


class Notification(OrganizationOwned, BaseModel):
    """A notification for one user, or for the whole organization when user_id is null."""

    __tablename__ = "notifications"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=NotificationType.INFO.value)
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    extra_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSONB, default=dict)


class NotificationResponse(OrganizationOwned, BaseModel):
    """A user's read/dismiss state for a notification."""

    __tablename__ = "notification_responses"
    __table_args__ = (UniqueConstraint("notification_id", "user_id"),)

    notification_id: Mapped[UUID] = mapped_column(
        ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=NotificationResponseStatus.UNREAD.value
    )
    read_at: Mapped[datetime | None] = mapped_column(nullable=True)
    dismissed_at: Mapped[datetime | None] = mapped_column(nullable=True)
