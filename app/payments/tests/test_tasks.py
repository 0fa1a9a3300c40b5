"""
Tests for payment Celery tasks.

Tasks are called directly; .delay and .apply_async are patched where a task
queues another.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone
from freezegun import freeze_time

from core.audit import RecordingAuditSink
from core.services import ServiceResult
from orders.models import Order
from orders.states import OrderStatus
from payments.models import MAX_WEBHOOK_RETRIES, WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.tasks import (
    cleanup_stuck_webhooks,
    process_webhook_event,
    reconcile_escrow_capture,
    retry_failed_webhooks,
)
from payments.tests.fakes import make_intent


def stored_event(event_id="evt_task_1", event_type="charge.refunded", **kwargs):
    return WebhookEvent.objects.create(
        stripe_event_id=event_id,
        event_type=event_type,
        payload={"data": {"object": {"id": "ch_1", "payment_intent": "pi_none"}}},
        **kwargs,
    )


@pytest.fixture
def audit_sink():
    sink = RecordingAuditSink()
    with patch("payments.tasks.get_audit_sink", return_value=sink):
        yield sink


@pytest.mark.django_db
class TestProcessWebhookEvent:
    def test_successful_handler_marks_processed(self):
        event = stored_event()

        with patch("payments.webhooks.handlers.dispatch_webhook", return_value=ServiceResult.success({})):
            result = process_webhook_event(str(event.id))

        event.refresh_from_db()
        assert result["status"] == "processed"
        assert event.status == WebhookEventStatus.PROCESSED
        assert event.retry_count == 1

    def test_handler_failure_marks_failed_and_audits(self, audit_sink):
        event = stored_event()
        failure = ServiceResult.failure("Order not found", "ORDER_NOT_FOUND")

        with patch("payments.webhooks.handlers.dispatch_webhook", return_value=failure):
            result = process_webhook_event(str(event.id))

        event.refresh_from_db()
        assert result["status"] == "handler_failed"
        assert event.status == WebhookEventStatus.FAILED
        assert event.error_message == "Order not found"
        record = audit_sink.events_named("webhook_processing_error")[0]
        assert record.details["error_code"] == "ORDER_NOT_FOUND"

    def test_exception_marks_failed_and_reraises(self, audit_sink):
        event = stored_event()

        with patch("payments.webhooks.handlers.dispatch_webhook", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                process_webhook_event.run(str(event.id))

        event.refresh_from_db()
        assert event.status == WebhookEventStatus.FAILED
        assert "boom" in event.error_message
        assert audit_sink.event_names() == ["webhook_processing_error"]

    def test_processed_event_is_skipped(self):
        event = stored_event(status=WebhookEventStatus.PROCESSED)

        with patch("payments.webhooks.handlers.dispatch_webhook") as dispatch:
            result = process_webhook_event(str(event.id))

        assert result["status"] == "already_processed"
        dispatch.assert_not_called()

    def test_unknown_event_id(self):
        result = process_webhook_event("00000000-0000-0000-0000-000000000000")

        assert result["status"] == "not_found"


@pytest.mark.django_db
class TestRetryFailedWebhooks:
    def test_requeues_retryable_failures_only(self):
        retryable = stored_event("evt_retry", status=WebhookEventStatus.FAILED, retry_count=1)
        stored_event("evt_exhausted", status=WebhookEventStatus.FAILED, retry_count=MAX_WEBHOOK_RETRIES)
        stored_event("evt_done", status=WebhookEventStatus.PROCESSED)

        with patch("payments.tasks.process_webhook_event.delay") as delay:
            result = retry_failed_webhooks()

        assert result == {"queued_count": 1}
        delay.assert_called_once_with(str(retryable.id))


@pytest.mark.django_db
class TestCleanupStuckWebhooks:
    def test_resets_old_processing_events(self):
        with freeze_time(timezone.now() - timedelta(hours=1)):
            stuck = stored_event("evt_stuck", status=WebhookEventStatus.PROCESSING)
        recent = stored_event("evt_recent", status=WebhookEventStatus.PROCESSING)

        result = cleanup_stuck_webhooks()

        assert result == {"reset_count": 1}
        assert WebhookEvent.objects.get(pk=stuck.pk).status == WebhookEventStatus.FAILED
        assert WebhookEvent.objects.get(pk=recent.pk).status == WebhookEventStatus.PROCESSING


@pytest.mark.django_db
class TestReconcileEscrowCapture:
    def test_applies_release_when_captured(self, stripe_adapter, delivered_order):
        stripe_adapter.add(make_intent(id=delivered_order.external_payment_reference, status="succeeded"))

        with patch("payments.services.escrow_manager.StripeAdapter", stripe_adapter):
            result = reconcile_escrow_capture.run(str(delivered_order.id))

        assert result == {"order_id": str(delivered_order.id), "applied": True}
        assert Order.objects.get(pk=delivered_order.pk).status == OrderStatus.COMPLETED
