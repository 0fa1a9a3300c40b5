"""
Order state enums and the legal transition table.

Order States:
    pending → awaiting_upload → in_progress → awaiting_delivery → delivered
    pending → completed (instant products)
    delivered → completed (buyer approval / escrow release)
    delivered → disputed → completed | refunded
    pending/awaiting_upload/in_progress/awaiting_delivery → cancelled

Terminal states: COMPLETED, CANCELLED, REFUNDED

Provider-initiated refunds (the payment provider reports a fully refunded
charge) may move any state that holds money to REFUNDED; see
is_legal_transition().
"""

from django.db import models


class OrderStatus(models.TextChoices):
    """Lifecycle states of an Order."""

    PENDING = "pending", "Pending"
    AWAITING_UPLOAD = "awaiting_upload", "Awaiting Upload"
    IN_PROGRESS = "in_progress", "In Progress"
    AWAITING_DELIVERY = "awaiting_delivery", "Awaiting Delivery"
    DELIVERED = "delivered", "Delivered"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"
    DISPUTED = "disputed", "Disputed"


class EscrowStatus(models.TextChoices):
    """
    Escrow state of an order's payment.

    NONE for instant products (captured at purchase). Collaboration orders
    start HELD (authorized, not captured) and end RELEASED or REFUNDED.
    """

    NONE = "none", "None"
    HELD = "held", "Held"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"


class HistorySource(models.TextChoices):
    """What caused a status change."""

    CLIENT = "client", "Client"
    WEBHOOK = "webhook", "Webhook"
    ADMIN = "admin", "Admin"
    SYSTEM = "system", "System"
    PROVIDER = "provider", "Provider"


ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.AWAITING_UPLOAD, OrderStatus.COMPLETED, OrderStatus.CANCELLED}
    ),
    OrderStatus.AWAITING_UPLOAD: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.AWAITING_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.AWAITING_DELIVERY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED, OrderStatus.DISPUTED}),
    OrderStatus.DISPUTED: frozenset({OrderStatus.COMPLETED, OrderStatus.REFUNDED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

# States from which a buyer or seller may still cancel
CANCELLABLE_STATUSES = frozenset(
    status
    for status, targets in ALLOWED_TRANSITIONS.items()
    if OrderStatus.CANCELLED in targets
)

# States holding authorized or captured money that the provider can refund
PROVIDER_REFUND_SOURCES = frozenset(
    {
        OrderStatus.PENDING,
        OrderStatus.AWAITING_UPLOAD,
        OrderStatus.IN_PROGRESS,
        OrderStatus.AWAITING_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.DISPUTED,
        OrderStatus.COMPLETED,
    }
)


def is_legal_transition(
    from_status: str,
    to_status: str,
    provider_initiated: bool = False,
) -> bool:
    """
    Return True if an order may move from ``from_status`` to ``to_status``.

    Args:
        from_status: Current OrderStatus value
        to_status: Target OrderStatus value
        provider_initiated: The change reports a refund the payment provider
            already performed, which is allowed from PROVIDER_REFUND_SOURCES
    """
    if to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset()):
        return True
    return (
        provider_initiated
        and to_status == OrderStatus.REFUNDED
        and from_status in PROVIDER_REFUND_SOURCES
    )
