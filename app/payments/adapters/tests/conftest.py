"""
Pytest fixtures for Stripe adapter tests.

Sections:
    - Mock Stripe objects
    - Stripe error fixtures
    - Patched Stripe resources
"""

from dataclasses import dataclass
from typing import Any
from unittest.mock import patch

import pytest
import stripe


@dataclass
class MockStripeObject:
    """Mock Stripe API object with attribute access and to_dict."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@pytest.fixture
def mock_payment_intent():
    def _create(
        id: str = "pi_test123456",
        status: str = "requires_payment_method",
        amount: int = 5000,
        currency: str = "usd",
        client_secret: str = "pi_test123456_secret_abc123",
        amount_received: int = 0,
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "payment_intent",
                "status": status,
                "amount": amount,
                "currency": currency,
                "client_secret": client_secret,
                "amount_received": amount_received,
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_refund():
    def _create(
        id: str = "re_test123456",
        amount: int = 5000,
        status: str = "succeeded",
        payment_intent: str = "pi_test123456",
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "refund",
                "amount": amount,
                "currency": "usd",
                "status": status,
                "payment_intent": payment_intent,
                "metadata": {},
            }
        )

    return _create


@pytest.fixture
def card_error():
    def _create(decline_code: str | None = "generic_decline") -> stripe.CardError:
        error = stripe.CardError(
            message="Your card was declined.",
            param=None,
            code="card_declined",
        )
        error.decline_code = decline_code
        return error

    return _create


@pytest.fixture
def mock_stripe_payment_intent(mock_payment_intent):
    with patch("stripe.PaymentIntent") as mock:
        mock.create.return_value = mock_payment_intent()
        mock.capture.return_value = mock_payment_intent(status="succeeded", amount_received=5000)
        mock.cancel.return_value = mock_payment_intent(status="canceled")
        mock.retrieve.return_value = mock_payment_intent(status="requires_capture")
        yield mock


@pytest.fixture
def mock_stripe_refund(mock_refund):
    with patch("stripe.Refund") as mock:
        mock.create.return_value = mock_refund()
        yield mock
