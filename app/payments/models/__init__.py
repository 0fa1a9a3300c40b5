"""
Payment domain models.

- Transaction: Immutable ledger of purchases, payouts and refunds
- WebhookEvent: Stripe webhook event tracking for idempotent processing
"""

from payments.models.transaction import Transaction
from payments.models.webhook_event import MAX_WEBHOOK_RETRIES, WebhookEvent

__all__ = [
    "MAX_WEBHOOK_RETRIES",
    "Transaction",
    "WebhookEvent",
]
