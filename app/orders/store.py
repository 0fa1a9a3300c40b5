"""
OrderStore: repository over Order and OrderStatusHistory.

Nothing outside the orders app creates orders or changes their status
except through this class (creation) and OrderStateMachine (status).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q

from core.exceptions import InvariantViolationError
from orders.exceptions import OrderNotFoundError
from orders.models import Order, OrderStatusHistory
from orders.state_machine import OrderStateMachine
from orders.states import HistorySource, OrderStatus

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from core.protocols import AuditSink


class OrderStore:
    """Lookups, atomic creation and atomic transitions for orders."""

    @staticmethod
    def get(order_id) -> Order:
        try:
            return Order.objects.select_related("service", "buyer", "seller").get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            raise OrderNotFoundError("Order not found", details={"order_id": str(order_id)})

    @staticmethod
    def get_for_update(order_id) -> Order:
        """
        Lock and return an order row.

        Must be called inside transaction.atomic(); the lock is held until
        the enclosing block ends.
        """
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            raise OrderNotFoundError("Order not found", details={"order_id": str(order_id)})

    @staticmethod
    def find_by_reference(reference: str, *, for_update: bool = False) -> Order | None:
        """Return the order created for a payment reference, or None."""
        queryset = Order.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.filter(external_payment_reference=reference).first()

    @staticmethod
    def create_atomically(
        *,
        buyer,
        seller,
        service,
        amount_cents: int,
        platform_fee_cents: int,
        seller_amount_cents: int,
        external_payment_reference: str,
        currency: str = "usd",
        actor=None,
        source: str = HistorySource.CLIENT,
    ) -> Order:
        """
        Insert a pending order and its creation history row.

        The unique constraint on ``external_payment_reference`` raises
        IntegrityError for a second order with the same reference; the
        idempotency guard relies on that.

        Raises:
            InvariantViolationError: The amount split does not add up
            IntegrityError: An order already exists for the reference
        """
        if platform_fee_cents + seller_amount_cents != amount_cents:
            raise InvariantViolationError(
                "Platform fee and seller amount do not add up to the order amount",
                error_code="FEE_SPLIT_MISMATCH",
                details={
                    "amount_cents": amount_cents,
                    "platform_fee_cents": platform_fee_cents,
                    "seller_amount_cents": seller_amount_cents,
                },
            )
        with transaction.atomic():
            order = Order.objects.create(
                buyer=buyer,
                seller=seller,
                service=service,
                amount_cents=amount_cents,
                platform_fee_cents=platform_fee_cents,
                seller_amount_cents=seller_amount_cents,
                currency=currency,
                external_payment_reference=external_payment_reference,
            )
            OrderStatusHistory.objects.create(
                order=order,
                from_status=None,
                to_status=OrderStatus.PENDING,
                actor=actor,
                source=source,
                reason="Order created",
            )
        return order

    @staticmethod
    def transition_atomically(
        order: Order,
        target: str,
        *,
        audit_sink: AuditSink | None = None,
        **kwargs,
    ) -> OrderStatusHistory:
        """Apply a status transition; see OrderStateMachine.transition."""
        return OrderStateMachine.transition(order, target, audit_sink=audit_sink, **kwargs)

    @staticmethod
    def history(order: Order) -> QuerySet[OrderStatusHistory]:
        return OrderStatusHistory.objects.filter(order=order).select_related("actor")

    @staticmethod
    def for_user(user, role: str = "all", status: str | None = None) -> QuerySet[Order]:
        """
        Orders visible to ``user``.

        Args:
            role: "buyer", "seller" or "all"
            status: Optional OrderStatus filter
        """
        if role == "buyer":
            queryset = Order.objects.filter(buyer=user)
        elif role == "seller":
            queryset = Order.objects.filter(seller=user)
        else:
            queryset = Order.objects.filter(Q(buyer=user) | Q(seller=user))
        if status:
            queryset = queryset.filter(status=status)
        return queryset.select_related("service", "buyer", "seller")
