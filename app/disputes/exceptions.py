"""
Dispute exceptions.

Exception Hierarchy:
    NotFoundError
    └── DisputeNotFoundError (404)

    ConflictError
    ├── ActiveDisputeExistsError - Order already has an open dispute (409)
    └── AlreadyResolvedError - Dispute is resolved or closed (409)
"""

from core.exceptions import ConflictError, NotFoundError


class DisputeNotFoundError(NotFoundError):
    default_error_code: str = "DISPUTE_NOT_FOUND"


class ActiveDisputeExistsError(ConflictError):
    """Raised when an order already has an open or under-review dispute."""

    default_error_code: str = "ACTIVE_DISPUTE_EXISTS"


class AlreadyResolvedError(ConflictError):
    """Raised when acting on a dispute that is no longer active."""

    default_error_code: str = "DISPUTE_ALREADY_RESOLVED"
