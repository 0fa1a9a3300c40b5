"""
Celery tasks for payment processing.

- process_webhook_event: Run the handler for a stored webhook event
- retry_failed_webhooks: Re-queue failed events (celery-beat, every 5 minutes)
- cleanup_stuck_webhooks: Reset events stuck in processing (every 15 minutes)
- reconcile_escrow_capture: Settle a capture whose outcome was unknown

Usage:
    from payments.tasks import process_webhook_event

    process_webhook_event.delay(str(webhook_event.id))
"""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.audit import get_audit_sink
from payments.models import MAX_WEBHOOK_RETRIES, WebhookEvent
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)

STUCK_PROCESSING_THRESHOLD_MINUTES = 30
RETRY_BATCH_SIZE = 100


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_WEBHOOK_RETRIES},
    acks_late=True,
)
def process_webhook_event(self, webhook_event_id: str) -> dict:
    """
    Process a stored Stripe webhook event.

    Handler failures mark the event failed and are reported to the audit
    sink. Unexpected exceptions do the same and are re-raised for Celery to
    retry with backoff.
    """
    from payments.webhooks.handlers import dispatch_webhook

    if isinstance(webhook_event_id, str):
        webhook_event_id = UUID(webhook_event_id)

    try:
        webhook_event = WebhookEvent.objects.get(id=webhook_event_id)
    except WebhookEvent.DoesNotExist:
        logger.error(
            "WebhookEvent not found",
            extra={"webhook_event_id": str(webhook_event_id)},
        )
        return {"status": "not_found", "webhook_event_id": str(webhook_event_id)}

    if webhook_event.is_processed:
        return {"status": "already_processed", "webhook_event_id": str(webhook_event_id)}

    webhook_event.mark_processing()
    webhook_event.save()

    try:
        with transaction.atomic():
            result = dispatch_webhook(webhook_event)
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        _record_failure(webhook_event, error_msg, getattr(e, "error_code", None))
        logger.exception(
            "Webhook processing failed with exception",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "stripe_event_id": webhook_event.stripe_event_id,
            },
        )
        raise

    if result.success:
        webhook_event.mark_processed()
        webhook_event.save()
        logger.info(
            "Webhook processed",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "stripe_event_id": webhook_event.stripe_event_id,
                "event_type": webhook_event.event_type,
            },
        )
        return {
            "status": "processed",
            "webhook_event_id": str(webhook_event_id),
            "stripe_event_id": webhook_event.stripe_event_id,
        }

    error_msg = result.error or "Handler returned failure"
    _record_failure(webhook_event, error_msg, result.error_code)
    return {
        "status": "handler_failed",
        "webhook_event_id": str(webhook_event_id),
        "error": error_msg,
    }


def _record_failure(webhook_event: WebhookEvent, error_msg: str, error_code: str | None) -> None:
    webhook_event.mark_failed(error_msg)
    webhook_event.save()
    logger.warning(
        f"Webhook handler failed: {error_msg}",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "event_type": webhook_event.event_type,
            "error_code": error_code,
            "retry_count": webhook_event.retry_count,
        },
    )
    get_audit_sink().record(
        "webhook_processing_error",
        severity="warning",
        stripe_event_id=webhook_event.stripe_event_id,
        event_type=webhook_event.event_type,
        error=error_msg,
        error_code=error_code,
    )


@shared_task
def retry_failed_webhooks() -> dict:
    """Re-queue failed webhook events that have retries left."""
    failed_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.FAILED,
        retry_count__lt=MAX_WEBHOOK_RETRIES,
    ).order_by("created_at")[:RETRY_BATCH_SIZE]

    queued_count = 0
    for webhook in failed_webhooks:
        process_webhook_event.delay(str(webhook.id))
        queued_count += 1

    if queued_count:
        logger.info(
            f"Queued {queued_count} failed webhooks for retry",
            extra={"queued_count": queued_count},
        )
    return {"queued_count": queued_count}


@shared_task
def cleanup_stuck_webhooks() -> dict:
    """
    Reset webhooks left in processing by a crashed worker.

    They are marked failed so retry_failed_webhooks picks them up.
    """
    threshold = timezone.now() - timedelta(minutes=STUCK_PROCESSING_THRESHOLD_MINUTES)
    stuck_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSING,
        updated_at__lt=threshold,
    )

    reset_count = 0
    for webhook in stuck_webhooks:
        webhook.mark_failed("Processing timed out - reset for retry")
        webhook.save()
        reset_count += 1
        logger.warning(
            "Reset stuck webhook",
            extra={
                "webhook_event_id": str(webhook.id),
                "stripe_event_id": webhook.stripe_event_id,
            },
        )

    return {"reset_count": reset_count}


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": getattr(settings, "STRIPE_MAX_RETRIES", 3)},
    acks_late=True,
)
def reconcile_escrow_capture(self, order_id: str) -> dict:
    """
    Check Stripe for the outcome of an escrow capture that timed out.

    Applies the local release only when Stripe reports the intent captured.
    """
    from payments.services import EscrowPaymentManager

    applied = EscrowPaymentManager().reconcile_capture(order_id)
    logger.info(
        "Escrow capture reconciled" if applied else "Escrow capture not applied",
        extra={"order_id": order_id, "applied": applied},
    )
    return {"order_id": order_id, "applied": applied}
