"""
Order and OrderStatusHistory models.

Order.status is a protected django-fsm field: it cannot be assigned
directly, only changed through the @transition methods below, and those are
only called by orders.state_machine.OrderStateMachine, which also writes the
matching OrderStatusHistory row.

Usage:
    from orders.state_machine import OrderStateMachine
    from orders.states import OrderStatus

    OrderStateMachine.transition(order, OrderStatus.DELIVERED, actor=seller)
"""

from __future__ import annotations

import time

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from django.utils import timezone
from django.utils.crypto import get_random_string
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin
from core.models import AppendOnlyModel, BaseModel
from orders.states import (
    CANCELLABLE_STATUSES,
    PROVIDER_REFUND_SOURCES,
    EscrowStatus,
    HistorySource,
    OrderStatus,
)

ORDER_NUMBER_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def generate_order_number() -> str:
    """External order number: ``ORD-<epoch ms>-<9 upper-case alphanumerics>``."""
    return f"ORD-{int(time.time() * 1000)}-{get_random_string(9, ORDER_NUMBER_ALPHABET)}"


class Order(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    One purchase of one service by one buyer from one seller.

    State Flow (instant product):
        PENDING -> COMPLETED

    State Flow (collaboration, escrow):
        PENDING -> AWAITING_UPLOAD -> IN_PROGRESS -> AWAITING_DELIVERY
        -> DELIVERED -> COMPLETED

    Dispute Flow:
        DELIVERED -> DISPUTED -> COMPLETED | REFUNDED

    Fields:
        order_number: External-facing unique number
        buyer/seller/service: Parties and listing, fixed at creation
        amount_cents: Total charged
        platform_fee_cents: Platform share
        seller_amount_cents: Seller share (fee + seller == amount)
        status: Current FSM state
        escrow_status: none | held | released | refunded
        external_payment_reference: Stripe PaymentIntent id (unique)
        buyer_files/seller_files: Delivery payloads with timestamps
        version: Optimistic locking version
    """

    # ==========================================================================
    # Identity & Parties
    # ==========================================================================

    order_number = models.CharField(
        max_length=40,
        unique=True,
        default=generate_order_number,
        editable=False,
        help_text="External order number (ORD-<ms>-<random>)",
    )

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="purchases",
        help_text="User who bought the service",
    )

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sales",
        help_text="User who sells the service",
    )

    service = models.ForeignKey(
        "catalog.Service",
        on_delete=models.PROTECT,
        related_name="orders",
        help_text="Purchased service",
    )

    # ==========================================================================
    # Amount Decomposition
    # ==========================================================================

    amount_cents = models.PositiveBigIntegerField(
        help_text="Total charged, in cents",
    )

    platform_fee_cents = models.PositiveBigIntegerField(
        help_text="Platform fee, in cents",
    )

    seller_amount_cents = models.PositiveBigIntegerField(
        help_text="Seller share, in cents",
    )

    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=OrderStatus.PENDING,
        choices=OrderStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current order status (managed by OrderStateMachine)",
    )

    escrow_status = models.CharField(
        max_length=10,
        choices=EscrowStatus.choices,
        default=EscrowStatus.NONE,
        help_text="Escrow state of the payment",
    )

    # ==========================================================================
    # Payment Provider
    # ==========================================================================

    external_payment_reference = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe PaymentIntent ID (pi_xxx); idempotency key for order creation",
    )

    # ==========================================================================
    # Delivery
    # ==========================================================================

    buyer_files = models.JSONField(
        default=dict,
        blank=True,
        help_text="Files and instructions uploaded by the buyer",
    )

    seller_files = models.JSONField(
        default=dict,
        blank=True,
        help_text="Files and notes delivered by the seller",
    )

    delivery_deadline = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the seller must deliver a collaboration",
    )

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["buyer", "status"], name="orders_buyer_status_idx"),
            models.Index(fields=["seller", "status"], name="orders_seller_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(
                    amount_cents=models.F("platform_fee_cents") + models.F("seller_amount_cents")
                ),
                name="order_amount_split_matches",
            ),
            models.CheckConstraint(
                condition=models.Q(amount_cents__gt=0),
                name="order_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Order({self.order_number}, {self.status}, {self.amount_cents / 100:.2f} {self.currency.upper()})"

    def clean(self):
        super().clean()
        if self.platform_fee_cents + self.seller_amount_cents != self.amount_cents:
            raise DjangoValidationError(
                "platform_fee_cents + seller_amount_cents must equal amount_cents"
            )

    @property
    def is_escrow(self) -> bool:
        return self.escrow_status != EscrowStatus.NONE

    def is_party(self, user) -> bool:
        return user.id in (self.buyer_id, self.seller_id)

    # ==========================================================================
    # State Transitions (django-fsm)
    #
    # Call through OrderStateMachine.transition, never directly.
    # ==========================================================================

    @transition(field=status, source=OrderStatus.PENDING, target=OrderStatus.AWAITING_UPLOAD)
    def start_collaboration(self):
        """Escrowed order is paid and waits for the buyer's files."""

    @transition(field=status, source=OrderStatus.AWAITING_UPLOAD, target=OrderStatus.IN_PROGRESS)
    def begin_work(self):
        """Buyer uploaded files; the seller starts working."""

    @transition(field=status, source=OrderStatus.IN_PROGRESS, target=OrderStatus.AWAITING_DELIVERY)
    def await_delivery(self):
        pass

    @transition(field=status, source=OrderStatus.AWAITING_DELIVERY, target=OrderStatus.DELIVERED)
    def mark_delivered(self):
        pass

    @transition(
        field=status,
        source=[OrderStatus.PENDING, OrderStatus.DELIVERED, OrderStatus.DISPUTED],
        target=OrderStatus.COMPLETED,
    )
    def complete(self):
        """Instant purchase confirmed, delivery approved, or dispute settled for the seller."""
        self.completed_at = timezone.now()

    @transition(field=status, source=list(CANCELLABLE_STATUSES), target=OrderStatus.CANCELLED)
    def cancel(self):
        self.cancelled_at = timezone.now()

    @transition(field=status, source=OrderStatus.DELIVERED, target=OrderStatus.DISPUTED)
    def open_dispute(self):
        pass

    @transition(field=status, source=OrderStatus.DISPUTED, target=OrderStatus.REFUNDED)
    def refund(self):
        """Admin-directed refund of a disputed order."""
        self.refunded_at = timezone.now()

    @transition(field=status, source=list(PROVIDER_REFUND_SOURCES), target=OrderStatus.REFUNDED)
    def provider_refund(self):
        """The payment provider reports the charge as fully refunded."""
        self.refunded_at = timezone.now()


class OrderStatusHistory(AppendOnlyModel):
    """
    Append-only record of one order status change.

    The creation row has ``from_status`` NULL and ``to_status`` pending.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name="status_history",
    )

    from_status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )

    to_status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who caused the change (null for webhooks and system jobs)",
    )

    source = models.CharField(
        max_length=10,
        choices=HistorySource.choices,
        default=HistorySource.SYSTEM,
    )

    reason = models.CharField(
        max_length=500,
        blank=True,
        default="",
    )

    class Meta:
        ordering = ["id"]
        verbose_name = "Order Status History"
        verbose_name_plural = "Order Status History"
        indexes = [
            models.Index(fields=["order", "created_at"], name="orders_history_order_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.from_status} -> {self.to_status} ({self.source})"
