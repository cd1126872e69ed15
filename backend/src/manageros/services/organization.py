"""Organization onboarding service."""
import re
from collections.abc import Iterator
from dataclasses import dataclass
from uuid import UUID

import structlog

from manageros.adapters.db.app_db import AppDatabase
from manageros.core.exceptions import SlugTaken, Unauthenticated
from manageros.core.tenancy import Principal

logger = structlog.get_logger()

# Leaves room for a numeric suffix within the 50 character column.
SLUG_BASE_LENGTH = 45
MAX_SLUG_ATTEMPTS = 50


class OnboardingError(Exception):
    """Raised when a user cannot be onboarded into a new organization."""

    pass


@dataclass
class OrganizationInfo:
    """Organization information."""

    id: UUID
    name: str
    slug: str
    external_ref: str | None = None


def organization_slug(name: str) -> str:
    """URL handle for an organization name, e.g. ``"Acme Corp"`` -> ``"acme-corp"``."""
    handle = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return handle[:SLUG_BASE_LENGTH].rstrip("-") or "organization"


def slug_candidates(base: str) -> Iterator[str]:
    """``base``, then ``base-1``, ``base-2`` and so on."""
    yield base
    for suffix in range(1, MAX_SLUG_ATTEMPTS):
        yield f"{base}-{suffix}"


class OrganizationService:
    """Creates organizations for new users and looks them up."""

    def __init__(self, db: AppDatabase):
        self.db = db

    async def get_organization(self, organization_id: UUID) -> OrganizationInfo | None:
        """Get organization by ID."""
        result = await self.db.get_organization(organization_id)
        if not result:
            return None
        return self._to_info(result)

    async def onboard(self, principal: Principal | None, name: str) -> OrganizationInfo:
        """Create an organization for a user who does not belong to one yet.

        The organization's slug is derived from its name. Each candidate slug
        is claimed by inserting it, so two users onboarding "Acme" at the same
        time end up with ``acme`` and ``acme-1`` instead of a conflict.

        Raises:
            Unauthenticated: If there is no principal.
            OnboardingError: If the user already belongs to an organization,
                or no free slug could be found for the name.
        """
        if principal is None:
            raise Unauthenticated()
        if principal.organization_id is not None:
            raise OnboardingError("User already belongs to an organization")

        organization = await self._claim_organization(name)
        attached = await self.db.set_user_organization(principal.user_id, organization.id)
        if not attached:
            raise OnboardingError("User already belongs to an organization")

        logger.info(
            "user_onboarded",
            user_id=str(principal.user_id),
            organization_id=str(organization.id),
            slug=organization.slug,
        )
        return organization

    async def _claim_organization(self, name: str) -> OrganizationInfo:
        for slug in slug_candidates(organization_slug(name)):
            try:
                row = await self.db.create_organization(name=name, slug=slug)
            except SlugTaken:
                logger.debug("organization_slug_taken", slug=slug)
                continue
            return self._to_info(row)

        raise OnboardingError(f"No free slug for organization '{name}'")

    def _to_info(self, row: dict) -> OrganizationInfo:
        return OrganizationInfo(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            external_ref=row.get("external_ref"),
        )
