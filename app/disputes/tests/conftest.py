"""
Pytest fixtures for dispute tests.
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.tests.factories import AdminFactory
from core.audit import RecordingAuditSink
from disputes.services import DisputeResolver
from disputes.tests.factories import DisputeFactory
from orders.states import OrderStatus
from orders.tests.factories import OrderFactory
from payments.services import EscrowPaymentManager
from payments.tests.fakes import FakeStripeAdapter


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def stripe_adapter():
    return FakeStripeAdapter()


@pytest.fixture
def resolver(stripe_adapter, audit_sink):
    manager = EscrowPaymentManager(stripe_adapter=stripe_adapter, audit_sink=audit_sink)
    return DisputeResolver(escrow_manager=manager, audit_sink=audit_sink)


@pytest.fixture
def admin_user(db):
    return AdminFactory()


@pytest.fixture
def delivered_order(db):
    return OrderFactory(advance_to=OrderStatus.DELIVERED)


@pytest.fixture
def dispute(db):
    return DisputeFactory()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client_for(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _client_for
