"""Error taxonomy shared by the API, the cron pipeline, and the CLI."""


class ManagerOSError(Exception):
    """Base class for application errors."""

    pass


class Unauthenticated(ManagerOSError):
    """Raised when no authenticated principal is present."""

    def __init__(self, message: str = "Authentication required") -> None:
        """Initialize with an optional message."""
        super().__init__(message)


class Unauthorized(ManagerOSError):
    """Raised when a caller presents credentials that do not grant access."""

    def __init__(self, message: str = "Unauthorized") -> None:
        """Initialize with an optional message."""
        super().__init__(message)


class NoOrganization(ManagerOSError):
    """Raised when a principal is not yet associated with any organization.

    Callers are expected to send the user through onboarding.
    """

    def __init__(self, message: str = "Organization required") -> None:
        """Initialize with an optional message."""
        super().__init__(message)


class Misconfigured(ManagerOSError):
    """Raised when a required server-side setting is missing."""

    pass


class JobNotFound(ManagerOSError):
    """Raised when a cron job identifier is not registered."""

    def __init__(self, job_id: str) -> None:
        """Initialize with the unknown job id."""
        self.job_id = job_id
        super().__init__(f"Job with ID '{job_id}' not found")


class ExecutionNotFound(ManagerOSError):
    """Raised when an execution record id is unknown."""

    def __init__(self, execution_id: object) -> None:
        """Initialize with the unknown execution id."""
        self.execution_id = execution_id
        super().__init__(f"Cron job execution '{execution_id}' not found")


class ExecutionAlreadyFinished(ManagerOSError):
    """Raised when finalizing an execution that already reached a terminal state."""

    def __init__(self, execution_id: object, status: str) -> None:
        """Initialize with the execution id and its current status."""
        self.execution_id = execution_id
        self.status = status
        super().__init__(f"Cron job execution '{execution_id}' is already {status}")


class StorageUnavailable(ManagerOSError):
    """Raised when the persistence layer cannot be reached or fails."""

    pass


class NotFoundInOrganization(ManagerOSError):
    """Raised when a referenced record does not exist in the caller's organization."""

    def __init__(self, resource: str, resource_id: object) -> None:
        """Initialize with the resource type and id."""
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} '{resource_id}' not found")


class OrganizationNotFound(ManagerOSError):
    """Raised when an organization id does not exist."""

    def __init__(self, organization_id: object) -> None:
        """Initialize with the unknown organization id."""
        self.organization_id = organization_id
        super().__init__(f"Organization with ID '{organization_id}' not found")


class SlugTaken(ManagerOSError):
    """Raised when an organization slug is already in use."""

    def __init__(self, slug: str) -> None:
        """Initialize with the conflicting slug."""
        self.slug = slug
        super().__init__(f"Organization slug '{slug}' is already taken")
