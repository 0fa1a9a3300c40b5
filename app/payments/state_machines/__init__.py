"""
State enums for payment models.
"""

from payments.state_machines.states import (
    TransactionStatus,
    TransactionType,
    WebhookEventStatus,
)

__all__ = [
    "TransactionStatus",
    "TransactionType",
    "WebhookEventStatus",
]
