"""
Base exception classes for application-wide error handling.

Every domain error in the marketplace engine derives from
BaseApplicationError so views, Celery tasks and webhook handlers can treat
them uniformly: a human-readable message, a machine-readable error code and
optional details.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Bad input or business-rule violations (400)
    ├── NotFoundError - Resource not found (404)
    ├── PermissionDeniedError - Caller is not allowed to act (403)
    ├── ConflictError - Current state forbids the operation (409)
    ├── ExternalServiceError - Payment provider or other upstream failure (502)
    └── InvariantViolationError - Internal consistency check failed (500)

Usage:
    from core.exceptions import ConflictError

    raise ConflictError(
        "Order cannot be cancelled after delivery",
        error_code="ORDER_ALREADY_DELIVERED",
        details={"order_id": str(order.id)},
    )

    try:
        ...
    except BaseApplicationError as e:
        return error_response(e)  # see core.api

Note:
    These exceptions are for domain logic. DRF still handles request parsing,
    authentication and serializer validation on its own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, current state, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Order not found",
                "error_code": "ORDER_NOT_FOUND",
                "details": {"order_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input or a business rule is invalid.

    Use for:
    - Bad request values (unknown resolution, description too short)
    - Rules such as "a seller cannot buy their own service"
    - Payments the provider reports as not yet completed

    Never retried automatically; surfaced verbatim to the caller.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Raised when a requested resource does not exist."""

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller lacks permission for an operation.

    Example:
        if user.id not in (order.buyer_id, order.seller_id):
            raise PermissionDeniedError(
                "Only the buyer or seller can dispute this order",
                error_code="NOT_ORDER_PARTY",
            )
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Illegal state transitions
    - Escrow preconditions that do not hold
    - Duplicate active records (second open dispute)
    - Concurrent modification conflicts

    HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Log the original error for debugging but don't expose provider internals
    to clients. HTTP 502 Bad Gateway is the appropriate status.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"


class InvariantViolationError(BaseApplicationError):
    """
    Raised when an internal invariant would be broken.

    Fatal to the current operation: raised inside an atomic block so nothing
    is partially applied. Examples are a fee split that does not add up or an
    attempt to rewrite an immutable ledger row.
    """

    default_error_code: str = "INVARIANT_VIOLATION"
