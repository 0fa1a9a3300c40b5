"""
Order lifecycle exceptions.

Exception Hierarchy:
    NotFoundError
    └── OrderNotFoundError - Unknown order id or payment reference (404)

    ConflictError
    ├── IllegalTransition - Target status not reachable from the current one (409)
    └── InvalidEscrowState - Escrow preconditions do not hold (409)
"""

from core.exceptions import ConflictError, NotFoundError


class OrderNotFoundError(NotFoundError):
    """Raised when an order lookup fails."""

    default_error_code: str = "ORDER_NOT_FOUND"


class IllegalTransition(ConflictError):
    """
    Raised when a status change is not in the transition table.

    Example:
        raise IllegalTransition(
            "Cannot move order from 'completed' to 'cancelled'",
            details={"from_status": "completed", "to_status": "cancelled"},
        )
    """

    default_error_code: str = "ILLEGAL_TRANSITION"


class InvalidEscrowState(ConflictError):
    """Raised when escrow release or refund preconditions are not met."""

    default_error_code: str = "INVALID_ESCROW_STATE"
