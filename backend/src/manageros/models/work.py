"""Initiatives, objectives, and tasks."""

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from manageros.models.base import BaseModel, OrganizationOwned


class TaskStatus(str, enum.Enum):
    """Task status."""

    TODO = "todo"
    DOING = "doing"
    BLOCKED = "blocked"
    DONE = "done"
    DROPPED = "dropped"


# Statuses that no longer count as outstanding work
CLOSED_TASK_STATUSES = (TaskStatus.DONE.value, TaskStatus.DROPPED.value)


class Initiative(OrganizationOwned, BaseModel):
    """A body of work tracked by the organization."""

    __tablename__ = "initiatives"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)


class Objective(OrganizationOwned, BaseModel):
    """A measurable objective within an initiative."""

    __tablename__ = "objectives"

    initiative_id: Mapped[UUID] = mapped_column(
        ForeignKey("initiatives.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)


class Task(OrganizationOwned, BaseModel):
    """A unit of work, optionally assigned to a person."""

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=TaskStatus.TODO.value)
    due_date: Mapped[datetime | None] = mapped_column(nullable=True)
    assignee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("people.id", ondelete="SET NULL"), nullable=True
    )
    initiative_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("initiatives.id", ondelete="SET NULL"), nullable=True
    )
    objective_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("objectives.id", ondelete="SET NULL"), nullable=True
    )
