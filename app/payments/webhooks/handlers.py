"""
Webhook event handlers for Stripe events.

Handlers are registered by event type and receive the stored WebhookEvent
plus the EscrowPaymentManager to act through. They return a ServiceResult;
domain errors become failed results, while provider errors worth retrying
propagate so the Celery task retries them.

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler("custom.event")
    def handle_custom_event(webhook_event, manager) -> ServiceResult:
        ...

    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from core.exceptions import BaseApplicationError
from core.services import ServiceResult
from payments.exceptions import StripeError
from payments.services import EscrowPaymentManager

if TYPE_CHECKING:
    from payments.models import WebhookEvent


logger = logging.getLogger(__name__)

Handler = Callable[["WebhookEvent", EscrowPaymentManager], ServiceResult]

WEBHOOK_HANDLERS: dict[str, Handler] = {}


def register_handler(*event_types: str) -> Callable[[Handler], Handler]:
    """
    Register a handler for one or more Stripe event types.

    Usage:
        @register_handler("payment_intent.succeeded")
        def handle_payment_succeeded(webhook_event, manager) -> ServiceResult:
            ...
    """

    def decorator(func: Handler) -> Handler:
        for event_type in event_types:
            WEBHOOK_HANDLERS[event_type] = func
        return func

    return decorator


def dispatch_webhook(
    webhook_event: WebhookEvent,
    manager: EscrowPaymentManager | None = None,
) -> ServiceResult:
    """
    Route a webhook event to its handler.

    Unknown event types succeed without doing anything, so Stripe stops
    redelivering them.

    Raises:
        StripeError: A retryable provider error, left for the task to retry
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)
    if handler is None:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success(None)

    try:
        return handler(webhook_event, manager or EscrowPaymentManager())
    except StripeError as e:
        if e.is_retryable:
            raise
        return ServiceResult.from_exception(e)
    except BaseApplicationError as e:
        logger.warning(
            f"Webhook handler rejected {webhook_event.event_type}: {e.message}",
            extra={
                "stripe_event_id": webhook_event.stripe_event_id,
                "error_code": e.error_code,
            },
        )
        return ServiceResult.from_exception(e)


def _intent_id(webhook_event: WebhookEvent) -> str | None:
    intent_id = webhook_event.get_object_id()
    if not intent_id:
        logger.error(
            f"{webhook_event.event_type}: event has no payment intent id",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
    return intent_id


# =============================================================================
# Payment Intent Handlers
# =============================================================================


@register_handler("payment_intent.succeeded", "payment_intent.amount_capturable_updated")
def handle_payment_intent_succeeded(webhook_event, manager) -> ServiceResult:
    """
    Make sure an order exists for a paid or authorized PaymentIntent.

    Creates the order when the client never confirmed, otherwise nothing
    changes.
    """
    intent_id = _intent_id(webhook_event)
    if not intent_id:
        return ServiceResult.failure("Missing payment intent id", "MISSING_OBJECT_ID")

    result = manager.confirm_from_provider(intent_id)
    logger.info(
        "Order confirmed from webhook" if not result.replayed else "Order already confirmed",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "payment_intent_id": intent_id,
            "order_id": str(result.order.id),
            "replayed": result.replayed,
        },
    )
    return ServiceResult.success({"order_id": str(result.order.id), "replayed": result.replayed})


@register_handler("payment_intent.payment_failed", "payment_intent.canceled")
def handle_payment_intent_failed(webhook_event, manager) -> ServiceResult:
    """Cancel the order of a failed or cancelled PaymentIntent, if any."""
    intent_id = _intent_id(webhook_event)
    if not intent_id:
        return ServiceResult.failure("Missing payment intent id", "MISSING_OBJECT_ID")

    data = webhook_event.get_object()
    failure = (data.get("last_payment_error") or {}).get("message")
    reason = failure or data.get("cancellation_reason") or webhook_event.event_type

    order = manager.cancel_for_failed_payment(intent_id, reason=f"Payment failed: {reason}")
    return ServiceResult.success({"order_id": str(order.id) if order else None})


# =============================================================================
# Charge Handlers
# =============================================================================


@register_handler("charge.refunded")
def handle_charge_refunded(webhook_event, manager) -> ServiceResult:
    """
    Mirror a full refund issued at the provider onto the order.

    Partial refunds are only logged. Repeated deliveries are no-ops.
    """
    charge = webhook_event.get_object()
    intent_id = charge.get("payment_intent")
    if not intent_id:
        logger.warning(
            "charge.refunded without payment intent",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success(None)

    amount = charge.get("amount") or 0
    amount_refunded = charge.get("amount_refunded") or 0
    if not charge.get("refunded") and amount_refunded < amount:
        logger.info(
            "Partial refund reported by provider, order unchanged",
            extra={
                "stripe_event_id": webhook_event.stripe_event_id,
                "payment_intent_id": intent_id,
                "amount_refunded": amount_refunded,
            },
        )
        return ServiceResult.success({"applied": False, "partial": True})

    result = manager.apply_provider_refund(
        intent_id,
        amount_refunded_cents=amount_refunded or None,
        external_reference=charge.get("id", ""),
    )
    return ServiceResult.success(
        {
            "order_id": str(result.order.id) if result.order else None,
            "applied": result.applied,
        }
    )
