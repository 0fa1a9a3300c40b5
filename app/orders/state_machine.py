"""
OrderStateMachine: the only code path that changes Order.status.

Each call checks the transition table, runs the django-fsm transition method
for the edge, applies an optional escrow status and appends one
OrderStatusHistory row, all inside one transaction.atomic() block. Callers
that move money wrap the call in their own atomic block so the ledger write
commits or rolls back with the status change.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction
from django_fsm import TransitionNotAllowed

from core.audit import get_audit_sink
from orders.exceptions import IllegalTransition
from orders.models import OrderStatusHistory
from orders.states import HistorySource, OrderStatus, is_legal_transition

if TYPE_CHECKING:
    from core.protocols import AuditSink
    from orders.models import Order

logger = logging.getLogger(__name__)

TRANSITION_METHODS = {
    OrderStatus.AWAITING_UPLOAD: "start_collaboration",
    OrderStatus.IN_PROGRESS: "begin_work",
    OrderStatus.AWAITING_DELIVERY: "await_delivery",
    OrderStatus.DELIVERED: "mark_delivered",
    OrderStatus.COMPLETED: "complete",
    OrderStatus.CANCELLED: "cancel",
    OrderStatus.DISPUTED: "open_dispute",
    OrderStatus.REFUNDED: "refund",
}


class OrderStateMachine:
    """
    Apply legal status transitions to orders.

    Usage:
        with transaction.atomic():
            order = OrderStore.get_for_update(order_id)
            OrderStateMachine.transition(
                order,
                OrderStatus.COMPLETED,
                actor=admin,
                source=HistorySource.ADMIN,
                escrow_status=EscrowStatus.RELEASED,
            )
            Transaction.objects.create(...)
    """

    @classmethod
    def transition(
        cls,
        order: Order,
        target: str,
        *,
        actor=None,
        source: str = HistorySource.SYSTEM,
        reason: str = "",
        escrow_status: str | None = None,
        provider_initiated: bool = False,
        audit_sink: AuditSink | None = None,
    ) -> OrderStatusHistory:
        """
        Move ``order`` to ``target`` and record the change.

        Args:
            order: Order to transition (ideally locked with select_for_update)
            target: OrderStatus value
            actor: User causing the change, if any
            source: HistorySource value
            reason: Free-text reason stored on the history row
            escrow_status: New EscrowStatus to store with the change
            provider_initiated: The provider already refunded the payment
            audit_sink: Sink for the order_status_changed event

        Returns:
            The new OrderStatusHistory row

        Raises:
            IllegalTransition: ``target`` is not reachable from the current status
        """
        from_status = order.status
        if not is_legal_transition(from_status, target, provider_initiated=provider_initiated):
            raise IllegalTransition(
                f"Cannot move order from '{from_status}' to '{target}'",
                details={
                    "order_id": str(order.id),
                    "from_status": from_status,
                    "to_status": str(target),
                },
            )

        method_name = TRANSITION_METHODS[target]
        if target == OrderStatus.REFUNDED and provider_initiated:
            method_name = "provider_refund"
            source = HistorySource.PROVIDER

        with transaction.atomic():
            try:
                getattr(order, method_name)()
            except TransitionNotAllowed as e:
                raise IllegalTransition(
                    str(e),
                    details={"order_id": str(order.id), "from_status": from_status},
                ) from e
            if escrow_status is not None:
                order.escrow_status = escrow_status
            order.save()
            history = OrderStatusHistory.objects.create(
                order=order,
                from_status=from_status,
                to_status=target,
                actor=actor,
                source=source,
                reason=reason[:500],
            )

        logger.info(
            f"Order {order.order_number}: {from_status} -> {target}",
            extra={
                "order_id": str(order.id),
                "from_status": from_status,
                "to_status": str(target),
                "source": str(source),
            },
        )
        (audit_sink or get_audit_sink()).record(
            "order_status_changed",
            actor_id=getattr(actor, "id", None),
            order_id=order.id,
            from_status=from_status,
            to_status=str(target),
            source=str(source),
        )
        return history
