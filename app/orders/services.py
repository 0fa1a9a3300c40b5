"""
Buyer and seller workflow for collaboration orders.

    awaiting_upload --upload_buyer_files--> in_progress
    in_progress/awaiting_delivery --deliver--> delivered
    delivered --complete--> completed (releases escrow)
    pending..awaiting_delivery --cancel--> cancelled (voids escrow)

Money-moving steps (complete, cancel) are delegated to the payment engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.utils import timezone

from core.exceptions import PermissionDeniedError, ValidationError
from core.services import BaseService
from orders.exceptions import IllegalTransition
from orders.state_machine import OrderStateMachine
from orders.states import EscrowStatus, HistorySource, OrderStatus
from orders.store import OrderStore

if TYPE_CHECKING:
    from core.protocols import AuditSink
    from orders.models import Order


def _escrow_manager(audit_sink=None):
    from payments.services import EscrowPaymentManager

    return EscrowPaymentManager(audit_sink=audit_sink)


class OrderWorkflowService(BaseService):
    """
    Party-driven order steps.

    Each method locks the order row, checks the caller and the current
    status, and applies the change through OrderStateMachine.
    """

    @classmethod
    def get_for_party(cls, order_id, user) -> Order:
        """
        Fetch an order the user may see.

        Raises:
            OrderNotFoundError: Unknown id
            PermissionDeniedError: Caller is neither party nor staff
        """
        order = OrderStore.get(order_id)
        if not (user.is_staff or order.is_party(user)):
            raise PermissionDeniedError(
                "Not authorized to view this order",
                error_code="NOT_ORDER_PARTY",
            )
        return order

    @classmethod
    def upload_buyer_files(
        cls,
        order_id,
        buyer,
        file_urls: list[str],
        instructions: str = "",
        audit_sink: AuditSink | None = None,
    ) -> Order:
        """Attach the buyer's source files and start the work."""
        if not file_urls:
            raise ValidationError("At least one file is required", error_code="FILES_REQUIRED")

        with cls.atomic():
            order = OrderStore.get_for_update(order_id)
            if order.buyer_id != buyer.id:
                raise PermissionDeniedError(
                    "Not authorized to upload files for this order",
                    error_code="NOT_ORDER_BUYER",
                )
            if order.status != OrderStatus.AWAITING_UPLOAD:
                raise IllegalTransition(
                    "Order is not awaiting file upload",
                    details={"order_id": str(order.id), "status": order.status},
                )
            order.buyer_files = {
                "files": list(file_urls),
                "instructions": instructions,
                "uploaded_at": timezone.now().isoformat(),
            }
            OrderStateMachine.transition(
                order,
                OrderStatus.IN_PROGRESS,
                actor=buyer,
                source=HistorySource.CLIENT,
                reason="Buyer uploaded files",
                audit_sink=audit_sink,
            )

        cls.get_logger().info(
            "Buyer files uploaded",
            extra={"order_id": str(order.id), "file_count": len(file_urls)},
        )
        return order

    @classmethod
    def deliver(
        cls,
        order_id,
        seller,
        file_urls: list[str],
        delivery_notes: str = "",
        audit_sink: AuditSink | None = None,
    ) -> Order:
        """
        Record the seller's delivery.

        From in_progress the order passes through awaiting_delivery so each
        edge of the transition table appears in the history.
        """
        if not file_urls:
            raise ValidationError("At least one file is required", error_code="FILES_REQUIRED")

        with cls.atomic():
            order = OrderStore.get_for_update(order_id)
            if order.seller_id != seller.id:
                raise PermissionDeniedError(
                    "Not authorized to deliver this order",
                    error_code="NOT_ORDER_SELLER",
                )
            if order.status not in (OrderStatus.IN_PROGRESS, OrderStatus.AWAITING_DELIVERY):
                raise IllegalTransition(
                    f"Cannot deliver order with status: {order.status}",
                    details={"order_id": str(order.id), "status": order.status},
                )
            order.seller_files = {
                "files": list(file_urls),
                "delivery_notes": delivery_notes,
                "delivered_at": timezone.now().isoformat(),
            }
            if order.status == OrderStatus.IN_PROGRESS:
                OrderStateMachine.transition(
                    order,
                    OrderStatus.AWAITING_DELIVERY,
                    actor=seller,
                    source=HistorySource.CLIENT,
                    audit_sink=audit_sink,
                )
            OrderStateMachine.transition(
                order,
                OrderStatus.DELIVERED,
                actor=seller,
                source=HistorySource.CLIENT,
                reason="Seller delivered files",
                audit_sink=audit_sink,
            )

        cls.get_logger().info("Order delivered", extra={"order_id": str(order.id)})
        return order

    @classmethod
    def complete(cls, order_id, buyer, audit_sink: AuditSink | None = None) -> Order:
        """
        Buyer approves the delivery.

        Escrowed orders are completed by releasing the held payment; the
        payout and the status change commit together.
        """
        order = OrderStore.get(order_id)
        if order.buyer_id != buyer.id:
            raise PermissionDeniedError(
                "Not authorized to complete this order",
                error_code="NOT_ORDER_BUYER",
            )
        if order.escrow_status == EscrowStatus.HELD:
            return _escrow_manager(audit_sink).release_escrow(
                order.id,
                actor=buyer,
                source=HistorySource.CLIENT,
                reason="Buyer approved delivery",
            )

        with cls.atomic():
            order = OrderStore.get_for_update(order_id)
            if order.status != OrderStatus.DELIVERED:
                raise IllegalTransition(
                    f"Cannot complete order with status: {order.status}",
                    details={"order_id": str(order.id), "status": order.status},
                )
            OrderStateMachine.transition(
                order,
                OrderStatus.COMPLETED,
                actor=buyer,
                source=HistorySource.CLIENT,
                reason="Buyer approved delivery",
                audit_sink=audit_sink,
            )
        return order

    @classmethod
    def cancel(
        cls,
        order_id,
        user,
        reason: str = "",
        audit_sink: AuditSink | None = None,
    ) -> Order:
        """Cancel before delivery; either party or staff may cancel."""
        order = OrderStore.get(order_id)
        if not (user.is_staff or order.is_party(user)):
            raise PermissionDeniedError(
                "Not authorized to cancel this order",
                error_code="NOT_ORDER_PARTY",
            )
        return _escrow_manager(audit_sink).cancel_order(order.id, actor=user, reason=reason)
