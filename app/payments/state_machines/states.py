"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration.

Transaction:
    Ledger rows are written once with their final status; there is no
    transition after insert.

WebhookEvent States:
    pending → processing → processed
    pending → processing → failed → processing (retry)
"""

from django.db import models


class TransactionType(models.TextChoices):
    """
    Kind of money movement recorded in the ledger.

    PURCHASE: Buyer paid (captured or authorized into escrow)
    PAYOUT: Seller share released from escrow
    REFUND: Money returned to the buyer (void, full or partial refund)
    """

    PURCHASE = "purchase", "Purchase"
    PAYOUT = "payout", "Payout"
    REFUND = "refund", "Refund"


class TransactionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED (can retry)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
