"""
End-to-end purchase scenarios through the public API.

Stripe is the in-memory FakeStripeAdapter; everything else (views, services,
state machine, ledger, webhook endpoint and task) runs for real.
"""

import json
import time
from unittest.mock import patch

import pytest
import stripe
from django.test import override_settings
from django.urls import reverse

from orders.models import Order
from orders.states import EscrowStatus, OrderStatus
from payments.models import Transaction, WebhookEvent
from payments.state_machines import TransactionType
from payments.tasks import process_webhook_event

WEBHOOK_SECRET = "whsec_test_integration"


@pytest.fixture
def patched_stripe(stripe_adapter):
    with patch("payments.services.escrow_manager.StripeAdapter", stripe_adapter):
        yield stripe_adapter


def purchase(client, service, fake_stripe):
    """Create an intent, let the buyer pay it, then confirm."""
    quote = client.post(
        reverse("payments:create_intent"), {"service_id": str(service.id)}, format="json"
    ).data
    fake_stripe.pay(quote["payment_intent_id"])
    response = client.post(
        reverse("payments:confirm"),
        {"payment_intent_id": quote["payment_intent_id"], "service_id": str(service.id)},
        format="json",
    )
    assert response.status_code == 201
    return quote, Order.objects.get(pk=response.data["order"]["id"])


@pytest.mark.django_db
def test_fifty_dollar_loop_pack_completes_immediately(client_for, buyer, loop_pack, patched_stripe):
    quote, order = purchase(client_for(buyer), loop_pack, patched_stripe)

    assert quote["platform_fee_cents"] == 400
    assert quote["seller_amount_cents"] == 4600
    assert order.status == OrderStatus.COMPLETED
    assert order.escrow_status == EscrowStatus.NONE
    assert (order.platform_fee_cents, order.seller_amount_cents) == (400, 4600)
    assert list(order.transactions.values_list("type", flat=True)) == [TransactionType.PURCHASE]


@pytest.mark.django_db
def test_two_hundred_dollar_collaboration_escrow_lifecycle(
    client_for, buyer, collaboration, patched_stripe
):
    buyer_client = client_for(buyer)
    seller_client = client_for(collaboration.seller)

    quote, order = purchase(buyer_client, collaboration, patched_stripe)
    assert quote["is_escrow"] is True
    assert order.status == OrderStatus.AWAITING_UPLOAD
    assert order.escrow_status == EscrowStatus.HELD

    upload = buyer_client.post(
        reverse("orders:upload", args=[order.id]),
        {"file_urls": ["https://files.example.com/stems.zip"], "instructions": "Warm mix"},
        format="json",
    )
    assert upload.status_code == 200
    assert upload.data["status"] == OrderStatus.IN_PROGRESS

    deliver = seller_client.post(
        reverse("orders:deliver", args=[order.id]),
        {"file_urls": ["https://files.example.com/final.wav"], "delivery_notes": "Final master"},
        format="json",
    )
    assert deliver.status_code == 200
    assert deliver.data["status"] == OrderStatus.DELIVERED

    complete = buyer_client.post(reverse("orders:complete", args=[order.id]), format="json")
    assert complete.status_code == 200

    order = Order.objects.get(pk=order.pk)
    assert order.status == OrderStatus.COMPLETED
    assert order.escrow_status == EscrowStatus.RELEASED
    payouts = Transaction.objects.filter(order=order, type=TransactionType.PAYOUT)
    assert [p.amount_cents for p in payouts] == [18400]
    assert patched_stripe.intents[quote["payment_intent_id"]].status == "succeeded"

    statuses = [h.to_status for h in order.status_history.all()]
    assert statuses == [
        OrderStatus.PENDING,
        OrderStatus.AWAITING_UPLOAD,
        OrderStatus.IN_PROGRESS,
        OrderStatus.AWAITING_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
    ]


def _signed_post(client, body: bytes):
    timestamp = int(time.time())
    signature = stripe.WebhookSignature._compute_signature(
        f"{timestamp}.{body.decode()}", WEBHOOK_SECRET
    )
    return client.post(
        reverse("payments:stripe_webhook"),
        data=body,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=f"t={timestamp},v1={signature}",
    )


@pytest.mark.django_db
@override_settings(STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET)
def test_duplicate_charge_refunded_is_applied_once(client, client_for, buyer, loop_pack, patched_stripe):
    _, order = purchase(client_for(buyer), loop_pack, patched_stripe)
    charge = {
        "id": "ch_dup",
        "object": "charge",
        "payment_intent": order.external_payment_reference,
        "amount": 5000,
        "amount_refunded": 5000,
        "refunded": True,
    }

    def deliver(event_id):
        body = json.dumps(
            {"id": event_id, "type": "charge.refunded", "data": {"object": charge}}
        ).encode()
        with patch("payments.tasks.process_webhook_event.delay") as delay:
            assert _signed_post(client, body).status_code == 200
        for call in delay.call_args_list:
            process_webhook_event(*call.args)

    deliver("evt_refund_1")
    deliver("evt_refund_1")  # same event redelivered
    deliver("evt_refund_2")  # second event for the same refund

    order = Order.objects.get(pk=order.pk)
    assert order.status == OrderStatus.REFUNDED
    assert order.status_history.filter(to_status=OrderStatus.REFUNDED).count() == 1
    assert Transaction.objects.filter(order=order, type=TransactionType.REFUND).count() == 1
    assert WebhookEvent.objects.filter(stripe_event_id="evt_refund_1").count() == 1
