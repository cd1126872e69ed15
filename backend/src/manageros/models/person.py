"""People and the activity recorded against them."""

import enum
from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from manageros.models.base import BaseModel, OrganizationOwned

if TYPE_CHECKING:
    from manageros.models.organization import Organization


class PersonStatus(str, enum.Enum):
    """Employment status of a person."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Person(OrganizationOwned, BaseModel):
    """Someone in the organization chart, optionally linked to a user account."""

    __tablename__ = "people"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=PersonStatus.ACTIVE.value)
    birthday: Mapped[date | None] = mapped_column(Date, nullable=True)
    manager_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("people.id", ondelete="SET NULL"), nullable=True
    )
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), unique=True, nullable=True
    )

    organization: Mapped["Organization"] = relationship("Organization", back_populates="people")
    manager = relationship("Person", remote_side="Person.id", back_populates="reports")
    reports = relationship("Person", back_populates="manager")


class OneOnOne(OrganizationOwned, BaseModel):
    """A one-on-one meeting between a manager and a report."""

    __tablename__ = "one_on_ones"

    manager_id: Mapped[UUID] = mapped_column(
        ForeignKey("people.id", ondelete="CASCADE"), nullable=False
    )
    report_id: Mapped[UUID] = mapped_column(
        ForeignKey("people.id", ondelete="CASCADE"), nullable=False
    )
    scheduled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class Feedback(OrganizationOwned, BaseModel):
    """Feedback written about a person."""

    __tablename__ = "feedback"

    about_id: Mapped[UUID] = mapped_column(
        ForeignKey("people.id", ondelete="CASCADE"), nullable=False
    )
    from_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("people.id", ondelete="SET NULL"), nullable=True
    )
    kind: Mapped[str] = mapped_column(String(20), default="neutral")
    body: Mapped[str] = mapped_column(Text, nullable=False)
