"""
Transaction ledger model.

Every money movement the engine performs is recorded as one immutable
Transaction row, written in the same database transaction as the order
status change that caused it.

Usage:
    from payments.models import Transaction
    from payments.state_machines import TransactionType

    with transaction.atomic():
        OrderStateMachine.transition(order, OrderStatus.COMPLETED, ...)
        Transaction.objects.create(
            order=order,
            buyer=order.buyer,
            seller=order.seller,
            type=TransactionType.PAYOUT,
            amount_cents=order.seller_amount_cents,
            external_reference=order.external_payment_reference,
        )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin
from core.models import AppendOnlyModel
from payments.state_machines import TransactionStatus, TransactionType


class Transaction(UUIDPrimaryKeyMixin, MetadataMixin, AppendOnlyModel):
    """
    Immutable ledger entry.

    Fields:
        order: Order the money belongs to (nullable for manual entries)
        buyer/seller: Parties of the movement
        type: purchase, payout or refund
        amount_cents: Amount moved
        platform_fee_cents: Platform share included in the amount
        external_reference: Stripe object id (pi_xxx, re_xxx)
        status: Final status at write time

    Constraints:
        At most one purchase and one payout per order. Refund rows are not
        limited (a partial settlement writes one refund next to the payout).
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="+",
    )

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="+",
    )

    type = models.CharField(
        max_length=10,
        choices=TransactionType.choices,
        db_index=True,
    )

    amount_cents = models.PositiveBigIntegerField(
        help_text="Amount moved, in cents",
    )

    platform_fee_cents = models.PositiveBigIntegerField(
        default=0,
        help_text="Platform fee included in this movement, in cents",
    )

    currency = models.CharField(
        max_length=3,
        default="usd",
    )

    external_reference = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Stripe object id for this movement",
    )

    status = models.CharField(
        max_length=10,
        choices=TransactionStatus.choices,
        default=TransactionStatus.COMPLETED,
    )

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "type"],
                condition=models.Q(type__in=[TransactionType.PURCHASE, TransactionType.PAYOUT]),
                name="unique_purchase_and_payout_per_order",
            ),
        ]

    def __str__(self) -> str:
        return f"Transaction({self.type}, {self.amount_cents / 100:.2f} {self.currency.upper()}, order={self.order_id})"
