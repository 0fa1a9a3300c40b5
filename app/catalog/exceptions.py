"""
Catalog lookup errors.
"""

from core.exceptions import NotFoundError, ValidationError


class ServiceNotFoundError(NotFoundError):
    """The service id does not exist."""

    default_error_code: str = "SERVICE_NOT_FOUND"


class ServiceUnavailableError(ValidationError):
    """The service exists but is not currently for sale."""

    default_error_code: str = "SERVICE_UNAVAILABLE"
