"""API Key authentication middleware."""

import hashlib
from datetime import UTC, datetime
from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from manageros.core.exceptions import NoOrganization
from manageros.core.tenancy import Principal, resolve_organization_id

logger = structlog.get_logger()

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(
    request: Request,
    api_key: str | None = Security(API_KEY_HEADER),
) -> Principal:
    """Verify API key and return the principal it belongs to.

    The principal's organization may still be empty; use
    ``require_organization`` for routes that touch tenant data.
    """
    if not api_key:
        raise HTTPException(status_code=401, detail="Missing API key")

    # Hash the key to look it up
    key_hash = hashlib.sha256(api_key.encode()).hexdigest()

    app_db = request.app.state.app_db

    api_key_record = await app_db.get_api_key_by_hash(key_hash)

    if not api_key_record:
        logger.warning("invalid_api_key", key_prefix=api_key[:8] if len(api_key) >= 8 else api_key)
        raise HTTPException(status_code=401, detail="Invalid API key")

    # Check expiration
    expires_at = api_key_record.get("expires_at")
    if isinstance(expires_at, datetime) and expires_at < datetime.now(UTC):
        raise HTTPException(status_code=401, detail="API key expired")

    try:
        await app_db.update_api_key_last_used(api_key_record["id"])
    except Exception as e:
        # Authentication still succeeds without the bookkeeping write
        logger.warning(
            "api_key_last_used_update_failed",
            key_id=str(api_key_record["id"]),
            error=str(e),
        )

    principal = Principal(
        user_id=api_key_record["user_id"],
        email=api_key_record["user_email"],
        name=api_key_record.get("user_name"),
        organization_id=api_key_record.get("organization_id"),
    )

    request.state.principal = principal

    logger.debug(
        "api_key_verified",
        key_id=str(api_key_record["id"]),
        user_id=str(principal.user_id),
    )

    return principal


async def require_organization(
    principal: Annotated[Principal, Depends(verify_api_key)],
) -> Principal:
    """Require the principal to belong to an organization.

    Raises:
        HTTPException: 403 if the principal has not been onboarded yet.
    """
    try:
        resolve_organization_id(principal)
    except NoOrganization as e:
        raise HTTPException(status_code=403, detail=str(e)) from e

    return principal


PrincipalDep = Annotated[Principal, Depends(verify_api_key)]
OrganizationPrincipalDep = Annotated[Principal, Depends(require_organization)]
