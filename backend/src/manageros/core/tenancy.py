"""Tenant identity resolution.

Every data access in ManagerOS is scoped to exactly one organization. The
organization is derived from the authenticated principal here, and the
resulting id is bound to an ``OrganizationScope`` for the rest of the
operation.
"""

from dataclasses import dataclass
from uuid import UUID

from manageros.core.exceptions import NoOrganization, Unauthenticated


@dataclass(frozen=True)
class Principal:
    """The authenticated user behind a request."""

    user_id: UUID
    email: str
    organization_id: UUID | None = None
    name: str | None = None


def resolve_organization_id(principal: Principal | None) -> UUID:
    """Resolve the single organization a principal acts within.

    Args:
        principal: The authenticated principal, or None if unauthenticated.

    Returns:
        The principal's organization id.

    Raises:
        Unauthenticated: If no principal is present.
        NoOrganization: If the principal has not joined an organization yet.
    """
    if principal is None:
        raise Unauthenticated()
    if principal.organization_id is None:
        raise NoOrganization()
    return principal.organization_id
