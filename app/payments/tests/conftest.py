"""
Pytest fixtures for payment tests.
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.tests.factories import AdminFactory, UserFactory
from catalog.tests.factories import CollaborationServiceFactory, ServiceFactory
from core.audit import RecordingAuditSink
from orders.states import OrderStatus
from orders.tests.factories import InstantOrderFactory, OrderFactory
from payments.services import EscrowPaymentManager
from payments.tests.fakes import FakeStripeAdapter


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def stripe_adapter():
    return FakeStripeAdapter()


@pytest.fixture
def manager(stripe_adapter, audit_sink):
    return EscrowPaymentManager(stripe_adapter=stripe_adapter, audit_sink=audit_sink)


@pytest.fixture
def buyer(db):
    return UserFactory()


@pytest.fixture
def admin_user(db):
    return AdminFactory()


@pytest.fixture
def loop_pack(db):
    return ServiceFactory(price_cents=5000)


@pytest.fixture
def collaboration(db):
    return CollaborationServiceFactory(price_cents=20000)


@pytest.fixture
def delivered_order(db):
    return OrderFactory(advance_to=OrderStatus.DELIVERED)


@pytest.fixture
def disputed_order(db):
    return OrderFactory(advance_to=OrderStatus.DISPUTED)


@pytest.fixture
def awaiting_upload_order(db):
    return OrderFactory(advance_to=OrderStatus.AWAITING_UPLOAD)


@pytest.fixture
def completed_instant_order(db):
    return InstantOrderFactory(advance_to=OrderStatus.COMPLETED)


@pytest.fixture
def client_for():
    def _client_for(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _client_for


@pytest.fixture
def api_client():
    return APIClient()
