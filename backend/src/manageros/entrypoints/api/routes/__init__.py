"""API route modules."""

from fastapi import APIRouter

from manageros.entrypoints.api.routes.cron import router as cron_router
from manageros.entrypoints.api.routes.notifications import router as notifications_router
from manageros.entrypoints.api.routes.organizations import router as organizations_router

# Versioned API router
api_router = APIRouter()

api_router.include_router(notifications_router)
api_router.include_router(organizations_router)

__all__ = ["api_router", "cron_router"]
