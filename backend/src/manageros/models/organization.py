"""Organization model for multi-tenancy."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from manageros.models.base import BaseModel


class Organization(BaseModel):
    """A tenant in the system."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    # Organization id at the identity provider, if any
    external_ref: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True)

    # Relationships
    users = relationship("User", back_populates="organization")
    people = relationship("Person", back_populates="organization", cascade="all, delete-orphan")
    cron_job_executions = relationship(
        "CronJobExecution", back_populates="organization", cascade="all, delete-orphan"
    )
