"""
Shared DRF helpers for the domain apps.

- error_response: turn a BaseApplicationError into a DRF Response with the
  matching HTTP status
- StandardPagination: page-number pagination capped at 100 items per page
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    InvariantViolationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific class first; the first isinstance match wins.
ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ExternalServiceError, status.HTTP_502_BAD_GATEWAY),
    (InvariantViolationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: BaseApplicationError) -> int:
    http_status = getattr(exc, "http_status", None)
    if http_status:
        return http_status
    for exc_class, code in ERROR_STATUS:
        if isinstance(exc, exc_class):
            return code
    return status.HTTP_400_BAD_REQUEST


def error_response(exc: BaseApplicationError) -> Response:
    """
    Build the API response for a domain error.

    Server-side failures are logged with the full error; clients get the
    standard ``to_dict()`` body.
    """
    http_status = status_for(exc)
    if http_status >= 500:
        logger.error(
            f"Request failed: {exc}",
            extra={"error_code": exc.error_code, "details": exc.details},
        )
    return Response(exc.to_dict(), status=http_status)


class StandardPagination(PageNumberPagination):
    """
    Page-number pagination for list endpoints.

    Default: 20 items per page
    Maximum: 100 items per page

    Query parameters:
        page: Page number
        page_size: Items per page (optional override)
    """

    page_size = 20
    max_page_size = 100
    page_size_query_param = "page_size"

