"""
Stripe webhook handling.

Webhooks are verified against the raw body, stored idempotently and
processed asynchronously by Celery.
"""

from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.views import stripe_webhook

__all__ = [
    "dispatch_webhook",
    "register_handler",
    "stripe_webhook",
]
