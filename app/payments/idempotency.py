"""
Idempotency guard for order creation.

Client confirmation and webhook replay can both try to create the order for
one payment reference. The unique constraint on
Order.external_payment_reference decides the winner: the loser's insert
fails inside a savepoint and it returns the winner's order instead.

Usage:
    result = IdempotencyGuard.run(payment_intent_id, create_order)
    if result.replayed:
        ...  # someone else created it; no side effects were repeated
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction

from orders.store import OrderStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from orders.models import Order

logger = logging.getLogger(__name__)


@dataclass
class GuardResult:
    order: Order
    replayed: bool


class IdempotencyGuard:
    """Deduplicate order creation by payment provider reference."""

    @staticmethod
    def lookup(reference: str) -> Order | None:
        return OrderStore.find_by_reference(reference)

    @classmethod
    def run(cls, reference: str, create: Callable[[], Order]) -> GuardResult:
        """
        Return the order for ``reference``, creating it with ``create`` if needed.

        ``create`` runs inside a savepoint together with all of its side
        effects (ledger row, status transitions), so a lost race rolls all of
        them back.

        Raises:
            IntegrityError: The insert failed for a reason other than an
                existing order for ``reference``
        """
        existing = cls.lookup(reference)
        if existing is not None:
            return GuardResult(order=existing, replayed=True)

        try:
            with transaction.atomic():
                order = create()
        except IntegrityError:
            existing = cls.lookup(reference)
            if existing is None:
                raise
            logger.info(
                "Concurrent order creation resolved by unique reference",
                extra={"payment_intent_id": reference, "order_id": str(existing.id)},
            )
            return GuardResult(order=existing, replayed=True)

        return GuardResult(order=order, replayed=False)
