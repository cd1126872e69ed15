"""Application services."""

from manageros.services.notification import NotificationData, NotificationService
from manageros.services.organization import (
    OnboardingError,
    OrganizationInfo,
    OrganizationService,
)

__all__ = [
    "NotificationData",
    "NotificationService",
    "OnboardingError",
    "OrganizationInfo",
    "OrganizationService",
]
