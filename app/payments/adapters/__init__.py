"""
Payment provider adapters.

Usage:
    from payments.adapters import StripeAdapter, CreatePaymentIntentParams
"""

from payments.adapters.stripe_adapter import (
    CreatePaymentIntentParams,
    IdempotencyKeyGenerator,
    PaymentIntentResult,
    RefundResult,
    StripeAdapter,
    translate_stripe_error,
)

__all__ = [
    "CreatePaymentIntentParams",
    "IdempotencyKeyGenerator",
    "PaymentIntentResult",
    "RefundResult",
    "StripeAdapter",
    "translate_stripe_error",
]
