"""
Tests for ServiceCatalog lookups.
"""

from uuid import uuid4

import pytest

from catalog.exceptions import ServiceNotFoundError, ServiceUnavailableError
from catalog.models import Service
from catalog.services import ServiceCatalog
from catalog.tests.factories import CollaborationServiceFactory, ServiceFactory


@pytest.mark.django_db
class TestServiceCatalog:
    def test_get_purchasable_returns_active_service(self):
        service = ServiceFactory()

        found = ServiceCatalog.get_purchasable(service.id)

        assert found == service
        assert found.requires_escrow is False

    def test_collaboration_requires_escrow(self):
        service = CollaborationServiceFactory()

        assert ServiceCatalog.get_purchasable(service.id).requires_escrow is True

    def test_unknown_id_raises_not_found(self):
        with pytest.raises(ServiceNotFoundError):
            ServiceCatalog.get_purchasable(uuid4())

    def test_malformed_id_raises_not_found(self):
        with pytest.raises(ServiceNotFoundError):
            ServiceCatalog.get("not-a-uuid")

    def test_inactive_service_is_unavailable(self):
        service = ServiceFactory(is_active=False)

        with pytest.raises(ServiceUnavailableError) as exc_info:
            ServiceCatalog.get_purchasable(service.id)

        assert exc_info.value.error_code == "SERVICE_UNAVAILABLE"

    def test_record_sale_increments_counter(self):
        service = ServiceFactory()

        ServiceCatalog.record_sale(service.id)
        ServiceCatalog.record_sale(service.id)

        assert Service.objects.get(pk=service.id).total_sales == 2
