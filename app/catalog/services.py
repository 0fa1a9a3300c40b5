"""
ServiceCatalog: read access to listings for the payment engine.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import F

from catalog.exceptions import ServiceNotFoundError, ServiceUnavailableError
from catalog.models import Service
from core.services import BaseService


class ServiceCatalog(BaseService):
    """
    Lookups by service id.

    Usage:
        service = ServiceCatalog.get_purchasable(service_id)
        if service.requires_escrow:
            ...
    """

    @classmethod
    def get(cls, service_id) -> Service:
        """
        Fetch a service by id.

        Raises:
            ServiceNotFoundError: Unknown or malformed id
        """
        try:
            return Service.objects.select_related("seller").get(pk=service_id)
        except (Service.DoesNotExist, DjangoValidationError, ValueError):
            raise ServiceNotFoundError(
                "Service not found",
                details={"service_id": str(service_id)},
            )

    @classmethod
    def get_purchasable(cls, service_id) -> Service:
        """
        Fetch a service that can be bought right now.

        Raises:
            ServiceNotFoundError: Unknown id
            ServiceUnavailableError: Listing is inactive
        """
        service = cls.get(service_id)
        if not service.is_active:
            raise ServiceUnavailableError(
                "Service is not available",
                details={"service_id": str(service.id)},
            )
        return service

    @classmethod
    def record_sale(cls, service_id) -> None:
        """Increment the sale counter in SQL so concurrent sales don't collide."""
        Service.objects.filter(pk=service_id).update(total_sales=F("total_sales") + 1)
