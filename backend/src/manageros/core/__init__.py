"""Core domain: error taxonomy and tenant identity."""

from manageros.core.exceptions import (
    ExecutionAlreadyFinished,
    ExecutionNotFound,
    JobNotFound,
    ManagerOSError,
    Misconfigured,
    NoOrganization,
    NotFoundInOrganization,
    OrganizationNotFound,
    SlugTaken,
    StorageUnavailable,
    Unauthenticated,
    Unauthorized,
)
from manageros.core.tenancy import Principal, resolve_organization_id

__all__ = [
    "ExecutionAlreadyFinished",
    "ExecutionNotFound",
    "JobNotFound",
    "ManagerOSError",
    "Misconfigured",
    "NoOrganization",
    "NotFoundInOrganization",
    "OrganizationNotFound",
    "Principal",
    "SlugTaken",
    "StorageUnavailable",
    "Unauthenticated",
    "Unauthorized",
    "resolve_organization_id",
]
