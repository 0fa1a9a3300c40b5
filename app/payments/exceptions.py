"""
Payment engine exceptions.

Exception Hierarchy:
    ValidationError (400)
    ├── PaymentNotCompletedError - Provider reports the payment unfinished
    └── WebhookSignatureError - Webhook signature missing or invalid

    InvariantViolationError (500)
    └── FeeSplitMismatchError - Platform fee + seller amount != amount

    ExternalServiceError (502)
    └── StripeError - Base for all Stripe errors (is_retryable flag)
        ├── StripeCardDeclinedError - Card declined (permanent, 402)
        ├── StripeInsufficientFundsError - Insufficient funds (permanent, 402)
        ├── StripeInvalidRequestError - Invalid request params (permanent)
        ├── StripeRateLimitError - Rate limited (transient, retry)
        ├── StripeAPIUnavailableError - API unavailable (transient, retry)
        └── StripeTimeoutError - Request timeout (transient, reconcile)

Escrow state errors (InvalidEscrowState) and transition errors live in
orders.exceptions; catalog lookups raise catalog.exceptions errors.

Usage:
    from payments.exceptions import StripeError

    try:
        StripeAdapter.capture_payment_intent(pi_id, idempotency_key=key)
    except StripeError as e:
        if e.is_retryable:
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import ExternalServiceError, InvariantViolationError, ValidationError

if TYPE_CHECKING:
    from typing import Any


class PaymentNotCompletedError(ValidationError):
    """
    Raised when confirming a payment the provider has not completed.

    Only ``succeeded`` (captured) and ``requires_capture`` (held for escrow)
    intents can create an order.
    """

    default_error_code: str = "PAYMENT_NOT_COMPLETED"


class WebhookSignatureError(ValidationError):
    """Raised when a webhook payload fails signature verification."""

    default_error_code: str = "INVALID_WEBHOOK_SIGNATURE"


class FeeSplitMismatchError(InvariantViolationError):
    """Raised when platform fee and seller amount do not add up to the amount."""

    default_error_code: str = "FEE_SPLIT_MISMATCH"


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(ExternalServiceError):
    """
    Base exception for all Stripe-related errors.

    Attributes:
        stripe_code: Stripe's error code
        decline_code: Card decline code (if applicable)
        is_retryable: Whether the same call may succeed if retried

    Example:
        try:
            StripeAdapter.create_payment_intent(...)
        except StripeError as e:
            if e.is_retryable:
                schedule_retry(e)
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class StripeCardDeclinedError(StripeError):
    """
    Card was declined by the issuing bank.

    Permanent for this card; the buyer must use another payment method.
    """

    default_error_code: str = "CARD_DECLINED"
    http_status: int = 402


class StripeInsufficientFundsError(StripeError):
    default_error_code: str = "INSUFFICIENT_FUNDS"
    http_status: int = 402


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe.

    Possible causes:
    - Unknown payment intent id
    - Intent not capturable or cancelable in its current state
    - Refund larger than the captured amount

    Usually a bug or a stale reference rather than a user error.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with the same idempotency key)
# -----------------------------------------------------------------------------


class StripeRateLimitError(StripeError):
    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """
    Stripe API is temporarily unavailable.

    Covers network failures and Stripe 5xx responses.
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeTimeoutError(StripeError):
    """
    Stripe API call timed out.

    The operation may have succeeded on Stripe's side. Retry with the same
    idempotency key, or reconcile against Stripe before assuming failure.
    """

    default_error_code: str = "STRIPE_TIMEOUT"
    is_retryable: bool = True
