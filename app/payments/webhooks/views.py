"""
Stripe webhook endpoint.

The signature is verified over the raw request body exactly as received;
re-serializing the JSON changes the bytes and fails verification. Verified
events are stored once per Stripe event id and processed by Celery, so the
endpoint answers quickly and Stripe redeliveries are harmless.

Usage:
    # In urls.py
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.audit import get_audit_sink
from payments.adapters import StripeAdapter
from payments.exceptions import WebhookSignatureError
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


def _client_ip(request: HttpRequest) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def _reject_signature(request: HttpRequest, reason: str) -> HttpResponse:
    logger.warning(
        f"Webhook rejected: {reason}",
        extra={"remote_addr": _client_ip(request)},
    )
    get_audit_sink().record(
        "security_webhook_signature_invalid",
        severity="warning",
        reason=reason,
        remote_addr=_client_ip(request),
        body_length=len(request.body),
    )
    return HttpResponse(reason, status=400)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Verify, store and queue a Stripe webhook event.

    Returns:
        400 when the signature is missing or invalid (nothing is stored),
        200 for every verified event, including duplicates and events whose
        processing could not be queued
    """
    payload = request.body
    signature = request.headers.get("Stripe-Signature", "")
    if not signature:
        return _reject_signature(request, "Missing signature")

    try:
        event_data = StripeAdapter.verify_webhook_signature(payload, signature)
    except WebhookSignatureError:
        return _reject_signature(request, "Invalid signature")

    stripe_event_id = event_data.get("id")
    event_type = event_data.get("type")
    if not stripe_event_id or not event_type:
        logger.warning("Verified webhook is missing id or type")
        return HttpResponse("Invalid event", status=400)

    webhook_event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id=stripe_event_id,
        defaults={
            "event_type": event_type,
            "payload": event_data,
            "status": WebhookEventStatus.PENDING,
        },
    )
    logger.info(
        f"Received Stripe webhook: {event_type}",
        extra={
            "stripe_event_id": stripe_event_id,
            "event_type": event_type,
            "duplicate": not created,
        },
    )

    if webhook_event.is_processed:
        return HttpResponse("Already processed", status=200)

    try:
        from payments.tasks import process_webhook_event

        process_webhook_event.delay(str(webhook_event.id))
    except Exception:
        # retry_failed_webhooks and Stripe redelivery pick the event up later
        logger.exception(
            "Failed to queue webhook for processing",
            extra={"stripe_event_id": stripe_event_id},
        )

    return HttpResponse("Accepted", status=200)
