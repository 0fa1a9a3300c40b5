"""
Tests for the transaction ledger and webhook event models.
"""

import pytest
from django.db import IntegrityError, transaction

from core.exceptions import InvariantViolationError
from orders.tests.factories import OrderFactory
from payments.models import MAX_WEBHOOK_RETRIES, Transaction, WebhookEvent
from payments.state_machines import TransactionType, WebhookEventStatus


def ledger_row(order, type=TransactionType.PURCHASE, amount_cents=20000):
    return Transaction.objects.create(
        order=order,
        buyer=order.buyer,
        seller=order.seller,
        type=type,
        amount_cents=amount_cents,
        external_reference=order.external_payment_reference,
    )


@pytest.mark.django_db
class TestTransaction:
    def test_rows_are_immutable(self):
        row = ledger_row(OrderFactory())
        row.amount_cents = 1

        with pytest.raises(InvariantViolationError) as exc_info:
            row.save()

        assert exc_info.value.error_code == "IMMUTABLE_RECORD"
        assert Transaction.objects.get(pk=row.pk).amount_cents == 20000

    def test_rows_cannot_be_deleted(self):
        row = ledger_row(OrderFactory())

        with pytest.raises(InvariantViolationError):
            row.delete()

    @pytest.mark.parametrize("type", [TransactionType.PURCHASE, TransactionType.PAYOUT])
    def test_one_purchase_and_one_payout_per_order(self, type):
        order = OrderFactory()
        ledger_row(order, type=type)

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                ledger_row(order, type=type)

    def test_multiple_refunds_are_allowed(self):
        order = OrderFactory()
        ledger_row(order, type=TransactionType.REFUND, amount_cents=100)
        ledger_row(order, type=TransactionType.REFUND, amount_cents=200)

        assert order.transactions.filter(type=TransactionType.REFUND).count() == 2


@pytest.mark.django_db
class TestWebhookEvent:
    def make_event(self, **kwargs):
        defaults = {
            "stripe_event_id": "evt_model_1",
            "event_type": "charge.refunded",
            "payload": {"data": {"object": {"id": "ch_1", "payment_intent": "pi_1"}}},
        }
        defaults.update(kwargs)
        return WebhookEvent.objects.create(**defaults)

    def test_object_helpers(self):
        event = self.make_event()

        assert event.get_object()["payment_intent"] == "pi_1"
        assert event.get_object_id() == "ch_1"

    def test_malformed_payload_has_no_object(self):
        event = self.make_event(payload={"data": None})

        assert event.get_object() == {}
        assert event.get_object_id() is None

    def test_status_helpers(self):
        event = self.make_event()

        event.mark_processing()
        assert event.status == WebhookEventStatus.PROCESSING
        assert event.retry_count == 1

        event.mark_failed("boom")
        assert event.can_retry is True

        event.mark_processed()
        assert event.is_processed is True
        assert event.error_message is None
        assert event.processed_at is not None

    def test_retries_are_bounded(self):
        event = self.make_event(status=WebhookEventStatus.FAILED, retry_count=MAX_WEBHOOK_RETRIES)

        assert event.can_retry is False
