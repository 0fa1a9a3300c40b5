"""
Payment services.

- EscrowPaymentManager: Purchase, escrow release, refunds and cancellation
- TransactionLedger: Admin listing and totals of ledger rows
"""

from payments.services.escrow_manager import (
    ConfirmResult,
    EscrowPaymentManager,
    IntentQuote,
    ProviderRefundResult,
)
from payments.services.ledger import TransactionLedger

__all__ = [
    "ConfirmResult",
    "EscrowPaymentManager",
    "IntentQuote",
    "ProviderRefundResult",
    "TransactionLedger",
]
