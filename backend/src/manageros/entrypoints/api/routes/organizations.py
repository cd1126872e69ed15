"""API routes for organization onboarding."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from manageros.entrypoints.api.deps import get_organization_service
from manageros.entrypoints.api.middleware.auth import OrganizationPrincipalDep, PrincipalDep
from manageros.services.organization import (
    OnboardingError,
    OrganizationInfo,
    OrganizationService,
)

router = APIRouter(prefix="/organizations", tags=["organizations"])

OrganizationServiceDep = Annotated[OrganizationService, Depends(get_organization_service)]


class OrganizationCreate(BaseModel):
    """Request body for creating an organization."""

    name: str = Field(..., min_length=1, max_length=100)


class OrganizationResponse(BaseModel):
    """Organization details."""

    id: UUID
    name: str
    slug: str
    external_ref: str | None = None


def _to_response(org: OrganizationInfo) -> OrganizationResponse:
    return OrganizationResponse(
        id=org.id, name=org.name, slug=org.slug, external_ref=org.external_ref
    )


@router.post("", status_code=201, response_model=OrganizationResponse)
async def create_organization(
    body: OrganizationCreate,
    principal: PrincipalDep,
    service: OrganizationServiceDep,
) -> OrganizationResponse:
    """Create an organization and make the current user its first member."""
    try:
        org = await service.onboard(principal, body.name)
    except OnboardingError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return _to_response(org)


@router.get("/current", response_model=OrganizationResponse)
async def get_current_organization(
    principal: OrganizationPrincipalDep,
    service: OrganizationServiceDep,
) -> OrganizationResponse:
    """Get the current user's organization."""
    assert principal.organization_id is not None
    org = await service.get_organization(principal.organization_id)
    if org is None:
        raise HTTPException(status_code=404, detail="Organization not found")

    return _to_response(org)
