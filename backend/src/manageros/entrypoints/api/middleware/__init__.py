"""API middleware and request dependencies."""

from manageros.entrypoints.api.middleware.auth import (
    OrganizationPrincipalDep,
    PrincipalDep,
    require_organization,
    verify_api_key,
)

__all__ = [
    "OrganizationPrincipalDep",
    "PrincipalDep",
    "require_organization",
    "verify_api_key",
]
