"""
Base service layer patterns for business logic encapsulation.

- ServiceResult: result wrapper for expected outcomes that should not raise
  (webhook handlers report success or failure this way)
- BaseService: logger and transaction helpers shared by service classes

Pattern Comparison:
    - ServiceResult: expected failures the caller records and moves on from
    - Exceptions: business-rule failures returned to API callers, and
      unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ServiceResult

    class OrderWorkflowService(BaseService):
        @classmethod
        def deliver(cls, order_id, seller, files):
            with cls.atomic():
                ...
            cls.get_logger().info("Order delivered", extra={"order_id": str(order_id)})
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful
        error: Error message if failed
        error_code: Machine-readable error code

    Usage:
        result = dispatch_webhook(event)
        if not result.success:
            event.mark_failed(result.error)
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T | None = None) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result.

        Example:
            return ServiceResult.failure("Order not found", "ORDER_NOT_FOUND")
        """
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def from_exception(cls, exc: Exception) -> ServiceResult[T]:
        """
        Create a failed result from a caught domain exception.

        Uses the exception's error_code when it has one, otherwise the
        upper-cased class name.
        """
        error_code = getattr(exc, "error_code", None) or exc.__class__.__name__.upper()
        message = getattr(exc, "message", None) or str(exc)
        return cls(success=False, error=message, error_code=error_code)

    def to_response(self) -> dict[str, Any]:
        """Convert to API response format."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {"success": False, "error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Services are stateless or hold only injected collaborators (payment
    adapter, audit sink). They raise domain exceptions from core.exceptions
    for business-rule failures.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for easy filtering.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around django.db.transaction.atomic() that makes
        transaction boundaries explicit in service code. Nested use creates a
        savepoint.
        """
        with transaction.atomic():
            yield
