"""
Factory Boy factories for orders.

Orders are created through OrderStore and advanced through
OrderStateMachine, so factory-built orders carry the same history rows and
escrow status as orders created by the payment engine.

Usage:
    from orders.tests.factories import OrderFactory, InstantOrderFactory
    from orders.states import OrderStatus

    order = OrderFactory(advance_to=OrderStatus.DELIVERED)
    instant = InstantOrderFactory(advance_to=OrderStatus.COMPLETED)
"""

import factory

from accounts.tests.factories import UserFactory
from catalog.tests.factories import CollaborationServiceFactory, ServiceFactory
from orders.models import Order
from orders.state_machine import OrderStateMachine
from orders.states import EscrowStatus, HistorySource, OrderStatus
from orders.store import OrderStore

_TO_DELIVERED = [
    OrderStatus.AWAITING_UPLOAD,
    OrderStatus.IN_PROGRESS,
    OrderStatus.AWAITING_DELIVERY,
    OrderStatus.DELIVERED,
]

ESCROW_PATHS = {
    OrderStatus.PENDING: [],
    OrderStatus.AWAITING_UPLOAD: _TO_DELIVERED[:1],
    OrderStatus.IN_PROGRESS: _TO_DELIVERED[:2],
    OrderStatus.AWAITING_DELIVERY: _TO_DELIVERED[:3],
    OrderStatus.DELIVERED: _TO_DELIVERED,
    OrderStatus.DISPUTED: [*_TO_DELIVERED, OrderStatus.DISPUTED],
    OrderStatus.COMPLETED: [*_TO_DELIVERED, OrderStatus.COMPLETED],
    OrderStatus.REFUNDED: [*_TO_DELIVERED, OrderStatus.DISPUTED, OrderStatus.REFUNDED],
    OrderStatus.CANCELLED: [OrderStatus.AWAITING_UPLOAD, OrderStatus.CANCELLED],
}

INSTANT_PATHS = {
    OrderStatus.PENDING: [],
    OrderStatus.COMPLETED: [OrderStatus.COMPLETED],
    OrderStatus.CANCELLED: [OrderStatus.CANCELLED],
}

ESCROW_AFTER = {
    OrderStatus.AWAITING_UPLOAD: EscrowStatus.HELD,
    OrderStatus.COMPLETED: EscrowStatus.RELEASED,
    OrderStatus.REFUNDED: EscrowStatus.REFUNDED,
    OrderStatus.CANCELLED: EscrowStatus.REFUNDED,
}


def advance_order(order: Order, target: str) -> Order:
    """Walk ``order`` from pending to ``target`` through legal transitions."""
    escrow = order.service.requires_escrow
    paths = ESCROW_PATHS if escrow else INSTANT_PATHS
    for step in paths[target]:
        OrderStateMachine.transition(
            order,
            step,
            source=HistorySource.SYSTEM,
            escrow_status=ESCROW_AFTER.get(step) if escrow else None,
        )
    return order


class OrderFactory(factory.django.DjangoModelFactory):
    """
    Collaboration order for a $200 service (fee 1600, seller 18400).

    Pass ``advance_to=<OrderStatus>`` to move it along the lifecycle.
    """

    class Meta:
        model = Order
        skip_postgeneration_save = True

    service = factory.SubFactory(CollaborationServiceFactory)
    buyer = factory.SubFactory(UserFactory)
    seller = factory.SelfAttribute("service.seller")
    amount_cents = factory.SelfAttribute("service.price_cents")
    platform_fee_cents = factory.LazyAttribute(lambda o: (o.amount_cents * 8 + 50) // 100)
    seller_amount_cents = factory.LazyAttribute(lambda o: o.amount_cents - o.platform_fee_cents)
    external_payment_reference = factory.Sequence(lambda n: f"pi_test_{n:08d}")

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        return OrderStore.create_atomically(**kwargs)

    @factory.post_generation
    def advance_to(obj, create, extracted, **kwargs):
        if create and extracted:
            advance_order(obj, extracted)


class InstantOrderFactory(OrderFactory):
    """Instant product order for a $50 loop pack (fee 400, seller 4600)."""

    service = factory.SubFactory(ServiceFactory)
