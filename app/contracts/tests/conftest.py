"""
Pytest fixtures for contract tests.
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from orders.states import OrderStatus
from orders.tests.factories import InstantOrderFactory, OrderFactory


@pytest.fixture(autouse=True)
def contract_storage(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path)
    settings.CONTRACT_STORAGE_PREFIX = "contracts/"
    return tmp_path


@pytest.fixture
def collaboration_order(db):
    return OrderFactory(advance_to=OrderStatus.AWAITING_UPLOAD)


@pytest.fixture
def instant_order(db):
    return InstantOrderFactory(advance_to=OrderStatus.COMPLETED)


@pytest.fixture
def client_for():
    def _client_for(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _client_for
