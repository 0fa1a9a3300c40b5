"""
Stripe adapter for the escrow engine.

Every call the engine makes to Stripe lives here: opening a PaymentIntent
(automatic capture for instant products, manual capture for escrow),
capturing or voiding a held authorization, refunding a captured payment and
checking webhook signatures. Callers get plain dataclasses back and typed
payments.exceptions errors instead of stripe exceptions.

Settings read on each call:
- STRIPE_SECRET_KEY
- STRIPE_WEBHOOK_SECRET
- STRIPE_API_TIMEOUT_SECONDS (default 10)

Usage:
    from payments.adapters import CreatePaymentIntentParams, StripeAdapter

    intent = StripeAdapter.create_payment_intent(
        CreatePaymentIntentParams(
            amount_cents=20000,
            currency="usd",
            idempotency_key=quote_key,
            capture_method="manual",
        )
    )
    StripeAdapter.capture_payment_intent(
        intent.id,
        idempotency_key=IdempotencyKeyGenerator.generate("capture", order.id),
    )
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeCardDeclinedError,
    StripeError,
    StripeInsufficientFundsError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeTimeoutError,
    WebhookSignatureError,
)

CAPTURE_METHODS = ("automatic", "manual")


@dataclass
class CreatePaymentIntentParams:
    """
    What the buyer is about to pay for.

    capture_method is "manual" for collaboration services, so the money is
    only authorized until the order is released or voided.
    """

    amount_cents: int
    currency: str
    idempotency_key: str
    metadata: dict[str, str] = field(default_factory=dict)
    description: str = ""
    capture_method: str = "automatic"

    def __post_init__(self) -> None:
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if not self.currency:
            raise ValueError("currency is required")
        if self.capture_method not in CAPTURE_METHODS:
            raise ValueError("capture_method must be 'automatic' or 'manual'")


@dataclass
class PaymentIntentResult:
    id: str
    status: str
    amount_cents: int
    currency: str
    client_secret: str | None = None
    amount_received: int = 0
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class RefundResult:
    id: str
    amount_cents: int
    currency: str
    status: str
    payment_intent_id: str
    metadata: dict[str, str] = field(default_factory=dict)


class IdempotencyKeyGenerator:
    """
    Deterministic Stripe idempotency keys: "{operation}:{entity}:{attempt}:{hash}".

    Capturing, voiding or refunding the same order twice reuses the key, so
    Stripe answers the retry with the first result.
    """

    @staticmethod
    def generate(operation: str, entity_id: uuid.UUID | str, attempt: int = 1) -> str:
        entity = str(entity_id)
        digest = hashlib.sha256(
            f"{operation}:{entity}:{attempt}:{settings.SECRET_KEY}".encode()
        ).hexdigest()[:8]
        return f"{operation}:{entity}:{attempt}:{digest}"


def _intent_result(intent) -> PaymentIntentResult:
    return PaymentIntentResult(
        id=intent.id,
        status=intent.status,
        amount_cents=intent.amount,
        currency=intent.currency,
        client_secret=intent.client_secret,
        amount_received=intent.amount_received or 0,
        metadata=dict(intent.metadata or {}),
    )


def translate_stripe_error(error: Exception) -> StripeError:
    """Map a stripe library exception onto the payments.exceptions family."""
    if isinstance(error, stripe.CardError):
        message = str(error.user_message or error)
        decline_code = getattr(error, "decline_code", None)
        error_class = (
            StripeInsufficientFundsError
            if decline_code == "insufficient_funds"
            else StripeCardDeclinedError
        )
        return error_class(message, stripe_code=error.code, decline_code=decline_code)

    if isinstance(error, stripe.InvalidRequestError):
        return StripeInvalidRequestError(str(error.user_message or error), stripe_code=error.code)

    if isinstance(error, stripe.AuthenticationError):
        return StripeInvalidRequestError(
            "Stripe authentication failed", stripe_code="authentication_error"
        )

    if isinstance(error, stripe.RateLimitError):
        return StripeRateLimitError("Stripe rate limit exceeded", stripe_code="rate_limit")

    if isinstance(error, stripe.APIConnectionError):
        if "timeout" in str(error).lower() or "timed out" in str(error).lower():
            return StripeTimeoutError(
                "Stripe request timed out; the operation may have completed",
                stripe_code="timeout",
            )
        return StripeAPIUnavailableError(
            "Could not connect to Stripe", stripe_code="api_connection_error"
        )

    if isinstance(error, stripe.APIError):
        return StripeAPIUnavailableError("Stripe service error", stripe_code="api_error")

    return StripeAPIUnavailableError(
        f"Unexpected Stripe error: {error}", stripe_code="unknown_error"
    )


class StripeAdapter:
    """
    Stateless Stripe gateway.

    All methods are classmethods, so the class itself is what
    EscrowPaymentManager receives as its provider; tests swap in a fake with
    the same methods.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def _call(cls, operation: str, **context):
        """
        Run one Stripe request: configure the client, time it, log it and
        re-raise stripe errors as StripeError subclasses.

        The yielded dict collects result fields for the completion log line.
        """
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.default_http_client = stripe.RequestsClient(
            timeout=getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        )
        logger = cls.get_logger()
        log_context = {"operation": operation, **context}
        outcome: dict[str, Any] = {}
        started = time.monotonic()

        try:
            yield outcome
        except stripe.StripeError as e:
            translated = translate_stripe_error(e)
            level = logging.WARNING if translated.is_retryable or translated.decline_code else logging.ERROR
            logger.log(
                level,
                f"Stripe {operation} failed: {translated.error_code}",
                extra={
                    **log_context,
                    "error_code": translated.error_code,
                    "stripe_code": translated.stripe_code,
                    "duration_ms": (time.monotonic() - started) * 1000,
                },
            )
            raise translated from e

        logger.info(
            f"Stripe {operation} completed",
            extra={**log_context, **outcome, "duration_ms": (time.monotonic() - started) * 1000},
        )

    # -------------------------------------------------------------------------
    # PaymentIntents
    # -------------------------------------------------------------------------

    @classmethod
    def create_payment_intent(
        cls,
        params: CreatePaymentIntentParams,
        trace_id: str | None = None,
    ) -> PaymentIntentResult:
        with cls._call(
            "create_payment_intent",
            amount_cents=params.amount_cents,
            capture_method=params.capture_method,
            idempotency_key=params.idempotency_key,
            trace_id=trace_id,
        ) as outcome:
            intent = stripe.PaymentIntent.create(
                amount=params.amount_cents,
                currency=params.currency,
                metadata=params.metadata,
                description=params.description or None,
                capture_method=params.capture_method,
                automatic_payment_methods={"enabled": True},
                idempotency_key=params.idempotency_key,
            )
            outcome.update(payment_intent_id=intent.id, status=intent.status)
        return _intent_result(intent)

    @classmethod
    def capture_payment_intent(
        cls,
        payment_intent_id: str,
        idempotency_key: str,
        amount_to_capture: int | None = None,
        trace_id: str | None = None,
    ) -> PaymentIntentResult:
        """
        Capture a held (manual capture) PaymentIntent.

        With ``amount_to_capture`` only that much is taken and the rest of
        the authorization goes back to the buyer. A StripeTimeoutError means
        the outcome is unknown and must be reconciled.
        """
        extra = {} if amount_to_capture is None else {"amount_to_capture": amount_to_capture}
        with cls._call(
            "capture_payment_intent",
            payment_intent_id=payment_intent_id,
            idempotency_key=idempotency_key,
            trace_id=trace_id,
            **extra,
        ) as outcome:
            intent = stripe.PaymentIntent.capture(
                payment_intent_id,
                idempotency_key=idempotency_key,
                **extra,
            )
            outcome.update(status=intent.status, amount_received=intent.amount_received)
        return _intent_result(intent)

    @classmethod
    def cancel_payment_intent(
        cls,
        payment_intent_id: str,
        idempotency_key: str,
        cancellation_reason: str = "requested_by_customer",
        trace_id: str | None = None,
    ) -> PaymentIntentResult:
        """Void an uncaptured authorization; held escrow needs no Refund object."""
        with cls._call(
            "cancel_payment_intent",
            payment_intent_id=payment_intent_id,
            idempotency_key=idempotency_key,
            trace_id=trace_id,
        ) as outcome:
            intent = stripe.PaymentIntent.cancel(
                payment_intent_id,
                cancellation_reason=cancellation_reason,
                idempotency_key=idempotency_key,
            )
            outcome.update(status=intent.status)
        return _intent_result(intent)

    @classmethod
    def retrieve_payment_intent(
        cls,
        payment_intent_id: str,
        trace_id: str | None = None,
    ) -> PaymentIntentResult:
        with cls._call(
            "retrieve_payment_intent",
            payment_intent_id=payment_intent_id,
            trace_id=trace_id,
        ) as outcome:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)
            outcome.update(status=intent.status)
        return _intent_result(intent)

    # -------------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------------

    @classmethod
    def create_refund(
        cls,
        payment_intent_id: str,
        idempotency_key: str,
        amount_cents: int | None = None,
        reason: str | None = None,
        metadata: dict[str, str] | None = None,
        trace_id: str | None = None,
    ) -> RefundResult:
        """Refund a captured payment, in full when ``amount_cents`` is None."""
        params: dict[str, Any] = {"payment_intent": payment_intent_id, "metadata": metadata or {}}
        if amount_cents is not None:
            params["amount"] = amount_cents
        if reason:
            params["reason"] = reason

        with cls._call(
            "create_refund",
            payment_intent_id=payment_intent_id,
            amount_cents=amount_cents,
            idempotency_key=idempotency_key,
            trace_id=trace_id,
        ) as outcome:
            refund = stripe.Refund.create(idempotency_key=idempotency_key, **params)
            outcome.update(refund_id=refund.id, status=refund.status)

        return RefundResult(
            id=refund.id,
            amount_cents=refund.amount,
            currency=refund.currency,
            status=refund.status,
            payment_intent_id=refund.payment_intent,
            metadata=dict(refund.metadata or {}),
        )

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    @classmethod
    def verify_webhook_signature(cls, payload: bytes, signature: str) -> dict[str, Any]:
        """
        Check the Stripe-Signature header and return the parsed event.

        ``payload`` must be the raw request body: the signature covers the
        exact bytes Stripe sent, so a re-serialized body fails.

        Raises:
            WebhookSignatureError: Signature missing, malformed or invalid
        """
        try:
            stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(
                "Invalid webhook signature", details={"error": str(e)}
            ) from e
        except ValueError as e:
            raise WebhookSignatureError(
                "Invalid webhook payload", details={"error": str(e)}
            ) from e
        return json.loads(payload)
