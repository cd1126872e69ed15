"""Audit trail of cron job runs."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from manageros.models.base import BaseModel, OrganizationOwned

if TYPE_CHECKING:
    from manageros.models.organization import Organization


class CronJobExecutionStatus(str, enum.Enum):
    """Execution status. SUCCESS and FAILURE are terminal."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


class CronJobExecution(OrganizationOwned, BaseModel):
    """One attempt to run one job for one organization."""

    __tablename__ = "cron_job_executions"

    job_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    job_name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=CronJobExecutionStatus.PENDING.value, nullable=False
    )
    notifications_created: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    extra_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONB, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    organization: Mapped["Organization"] = relationship(
        "Organization", back_populates="cron_job_executions"
    )
