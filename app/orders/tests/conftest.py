"""
Pytest fixtures for order tests.
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from core.audit import RecordingAuditSink
from orders.states import OrderStatus
from orders.tests.factories import InstantOrderFactory, OrderFactory


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def pending_order(db):
    return OrderFactory()


@pytest.fixture
def awaiting_upload_order(db):
    return OrderFactory(advance_to=OrderStatus.AWAITING_UPLOAD)


@pytest.fixture
def in_progress_order(db):
    return OrderFactory(advance_to=OrderStatus.IN_PROGRESS)


@pytest.fixture
def delivered_order(db):
    return OrderFactory(advance_to=OrderStatus.DELIVERED)


@pytest.fixture
def completed_instant_order(db):
    return InstantOrderFactory(advance_to=OrderStatus.COMPLETED)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """Return a function building an APIClient authenticated as a user."""

    def _client_for(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _client_for
