"""
Read side of the transaction ledger.

Rows are written only by EscrowPaymentManager; this module lists them for
admins and sums them.

Usage:
    from payments.services import TransactionLedger

    rows = TransactionLedger.entries(type=TransactionType.PAYOUT)
    TransactionLedger.totals(rows)  # {"count": 3, "amount_cents": ..., ...}
"""

from __future__ import annotations

from django.db.models import Count, QuerySet, Sum

from payments.models import Transaction


class TransactionLedger:
    """All methods are static - no instance state is maintained."""

    @staticmethod
    def entries(type: str | None = None, status: str | None = None) -> QuerySet[Transaction]:
        """Ledger rows, newest first, optionally filtered by type and status."""
        queryset = Transaction.objects.select_related("order")
        if type:
            queryset = queryset.filter(type=type)
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by("-created_at")

    @staticmethod
    def totals(queryset: QuerySet[Transaction]) -> dict[str, int]:
        """Row count and summed amount and platform fee over ``queryset``."""
        sums = queryset.order_by().aggregate(
            count=Count("id"),
            amount_cents=Sum("amount_cents"),
            platform_fee_cents=Sum("platform_fee_cents"),
        )
        return {
            "count": sums["count"],
            "amount_cents": sums["amount_cents"] or 0,
            "platform_fee_cents": sums["platform_fee_cents"] or 0,
        }
