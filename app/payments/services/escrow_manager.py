"""
Escrow payment manager.

Coordinates Stripe, the order store and the transaction ledger for every
money movement of an order:

- create_intent: quote the fee split and open a PaymentIntent
- confirm_payment / confirm_from_provider: create the order exactly once
- release_escrow: capture held funds and pay the seller
- refund / partial_settlement: dispute outcomes
- cancel_order: void held funds before delivery
- apply_provider_refund: mirror a refund issued outside the platform
- reconcile_capture: settle a capture whose outcome was unknown

Every order mutation and the Transaction rows it causes are written in one
transaction.atomic() block. Stripe failures raise typed StripeError
subclasses and leave local state untouched.

Usage:
    from payments.services import EscrowPaymentManager

    manager = EscrowPaymentManager()
    quote = manager.create_intent(service_id, buyer)
    result = manager.confirm_payment(quote.payment_intent_id, service_id, buyer)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from catalog.services import ServiceCatalog
from core.audit import get_audit_sink
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from core.services import BaseService
from disputes.states import DisputeResolution
from orders.exceptions import IllegalTransition, InvalidEscrowState
from orders.state_machine import OrderStateMachine
from orders.states import (
    CANCELLABLE_STATUSES,
    EscrowStatus,
    HistorySource,
    OrderStatus,
    is_legal_transition,
)
from orders.store import OrderStore
from payments.adapters import (
    CreatePaymentIntentParams,
    IdempotencyKeyGenerator,
    PaymentIntentResult,
    StripeAdapter,
)
from payments.exceptions import (
    PaymentNotCompletedError,
    StripeAPIUnavailableError,
    StripeTimeoutError,
)
from payments.fees import calculate_fee_split
from payments.idempotency import IdempotencyGuard
from payments.models import Transaction
from payments.state_machines import TransactionStatus, TransactionType

if TYPE_CHECKING:
    from catalog.models import Service
    from core.protocols import AuditSink
    from orders.models import Order


CONFIRMABLE_INTENT_STATUSES = frozenset({"succeeded", "requires_capture"})
RECONCILE_COUNTDOWN_SECONDS = 60
RECONCILABLE_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.DISPUTED})


@dataclass
class IntentQuote:
    client_secret: str | None
    payment_intent_id: str
    amount_cents: int
    platform_fee_cents: int
    seller_amount_cents: int
    is_escrow: bool
    idempotency_key: str
    currency: str = "usd"


@dataclass
class ConfirmResult:
    order: Order
    replayed: bool


@dataclass
class ProviderRefundResult:
    order: Order | None
    applied: bool


class EscrowPaymentManager(BaseService):
    """
    Payment operations for marketplace orders.

    Both collaborators are injectable so tests can pass a mock adapter and a
    RecordingAuditSink.
    """

    def __init__(self, stripe_adapter=None, audit_sink: AuditSink | None = None):
        self.stripe = stripe_adapter or StripeAdapter
        self.audit = audit_sink or get_audit_sink()

    # -------------------------------------------------------------------------
    # Purchase
    # -------------------------------------------------------------------------

    def create_intent(self, service_id, buyer, idempotency_key: str | None = None) -> IntentQuote:
        """
        Open a PaymentIntent for a service purchase.

        Collaboration services use manual capture so the funds stay
        authorized (held in escrow) until the buyer approves delivery.

        Raises:
            ServiceNotFoundError: Unknown service
            ServiceUnavailableError: Service is not active
            ValidationError: Buyer is the seller
            StripeError: Provider call failed
        """
        service = ServiceCatalog.get_purchasable(service_id)
        if service.seller_id == buyer.id:
            raise ValidationError(
                "You cannot purchase your own service",
                error_code="SELF_PURCHASE",
                details={"service_id": str(service.id)},
            )

        split = calculate_fee_split(service.price_cents)
        key = idempotency_key or f"{buyer.id}-{service.id}-{int(time.time() * 1000)}"
        is_escrow = service.requires_escrow
        currency = getattr(settings, "PAYMENT_CURRENCY", "usd")

        intent = self.stripe.create_payment_intent(
            CreatePaymentIntentParams(
                amount_cents=split.amount_cents,
                currency=currency,
                idempotency_key=key,
                metadata={
                    "service_id": str(service.id),
                    "buyer_id": str(buyer.id),
                    "seller_id": str(service.seller_id),
                    "service_type": service.service_type,
                    "platform_fee_cents": str(split.platform_fee_cents),
                    "seller_amount_cents": str(split.seller_amount_cents),
                    "idempotency_key": key,
                },
                description=f"Purchase: {service.title}",
                capture_method="manual" if is_escrow else "automatic",
            )
        )

        self.get_logger().info(
            "Payment intent created",
            extra={
                "payment_intent_id": intent.id,
                "service_id": str(service.id),
                "buyer_id": str(buyer.id),
                "amount_cents": split.amount_cents,
                "is_escrow": is_escrow,
            },
        )
        self.audit.record(
            "payment_created",
            actor_id=buyer.id,
            payment_intent_id=intent.id,
            service_id=str(service.id),
            amount_cents=split.amount_cents,
            is_escrow=is_escrow,
        )
        return IntentQuote(
            client_secret=intent.client_secret,
            payment_intent_id=intent.id,
            amount_cents=split.amount_cents,
            platform_fee_cents=split.platform_fee_cents,
            seller_amount_cents=split.seller_amount_cents,
            is_escrow=is_escrow,
            idempotency_key=key,
            currency=currency,
        )

    def confirm_payment(self, provider_reference: str, service_id, caller) -> ConfirmResult:
        """
        Create the order for a paid PaymentIntent, at most once.

        A repeated confirmation returns the stored order with
        ``replayed=True`` and repeats no side effects.

        Raises:
            PermissionDeniedError: The order belongs to another buyer
            PaymentNotCompletedError: The intent is not paid or authorized
            ValidationError: The intent was created for another purchase
            StripeError: Provider call failed
        """
        existing = IdempotencyGuard.lookup(provider_reference)
        if existing is not None:
            return self._replay(existing, caller)

        service = ServiceCatalog.get(service_id)
        intent = self.stripe.retrieve_payment_intent(provider_reference)
        self._check_intent(intent, service, caller.id)

        result = self._create_order(intent, service, caller, HistorySource.CLIENT)
        if result.replayed:
            return self._replay(result.order, caller)
        return result

    def confirm_from_provider(self, provider_reference: str) -> ConfirmResult:
        """
        Create the order for a PaymentIntent reported by a webhook.

        The buyer and service come from the intent metadata written by
        create_intent, so this converges with confirm_payment on one order.
        """
        existing = IdempotencyGuard.lookup(provider_reference)
        if existing is not None:
            return ConfirmResult(order=existing, replayed=True)

        intent = self.stripe.retrieve_payment_intent(provider_reference)
        service_id = intent.metadata.get("service_id")
        buyer_id = intent.metadata.get("buyer_id")
        if not service_id or not buyer_id:
            raise ValidationError(
                "Payment intent has no purchase metadata",
                error_code="PAYMENT_METADATA_MISSING",
                details={"payment_intent_id": intent.id},
            )

        service = ServiceCatalog.get(service_id)
        User = get_user_model()
        try:
            buyer = User.objects.get(pk=buyer_id)
        except (User.DoesNotExist, ValueError):
            raise NotFoundError(
                "Buyer not found",
                error_code="BUYER_NOT_FOUND",
                details={"buyer_id": buyer_id, "payment_intent_id": intent.id},
            )

        self._check_intent(intent, service, buyer.id)
        return self._create_order(intent, service, buyer, HistorySource.WEBHOOK)

    def _replay(self, order: Order, caller) -> ConfirmResult:
        if order.buyer_id != caller.id and not caller.is_staff:
            raise PermissionDeniedError(
                "This payment belongs to another buyer",
                error_code="NOT_PAYMENT_OWNER",
                details={"order_id": str(order.id)},
            )
        return ConfirmResult(order=order, replayed=True)

    @staticmethod
    def _check_intent(intent: PaymentIntentResult, service: Service, buyer_id) -> None:
        if intent.status not in CONFIRMABLE_INTENT_STATUSES:
            raise PaymentNotCompletedError(
                "Payment has not been completed",
                details={"payment_intent_id": intent.id, "status": intent.status},
            )
        metadata = intent.metadata or {}
        if (
            metadata.get("service_id") != str(service.id)
            or metadata.get("buyer_id") != str(buyer_id)
        ):
            raise ValidationError(
                "Payment does not match this purchase",
                error_code="PAYMENT_MISMATCH",
                details={"payment_intent_id": intent.id, "service_id": str(service.id)},
            )

    def _create_order(
        self,
        intent: PaymentIntentResult,
        service: Service,
        buyer,
        source: str,
    ) -> ConfirmResult:
        split = calculate_fee_split(intent.amount_cents)
        is_escrow = service.requires_escrow

        def create() -> Order:
            order = OrderStore.create_atomically(
                buyer=buyer,
                seller=service.seller,
                service=service,
                amount_cents=split.amount_cents,
                platform_fee_cents=split.platform_fee_cents,
                seller_amount_cents=split.seller_amount_cents,
                external_payment_reference=intent.id,
                currency=intent.currency,
                actor=buyer,
                source=source,
            )
            Transaction.objects.create(
                order=order,
                buyer=buyer,
                seller=service.seller,
                type=TransactionType.PURCHASE,
                amount_cents=split.amount_cents,
                platform_fee_cents=split.platform_fee_cents,
                currency=intent.currency,
                external_reference=intent.id,
                status=TransactionStatus.COMPLETED,
                metadata={
                    "capture_method": "manual" if is_escrow else "automatic",
                    "intent_status": intent.status,
                },
            )
            if is_escrow:
                order.delivery_deadline = timezone.now() + timedelta(
                    days=service.delivery_time_days
                )
                OrderStateMachine.transition(
                    order,
                    OrderStatus.AWAITING_UPLOAD,
                    actor=buyer,
                    source=source,
                    reason="Payment held in escrow",
                    escrow_status=EscrowStatus.HELD,
                    audit_sink=self.audit,
                )
            else:
                OrderStateMachine.transition(
                    order,
                    OrderStatus.COMPLETED,
                    actor=buyer,
                    source=source,
                    reason="Instant purchase",
                    escrow_status=EscrowStatus.NONE,
                    audit_sink=self.audit,
                )
            ServiceCatalog.record_sale(service.id)
            if is_escrow:
                transaction.on_commit(lambda: _queue_contract(order.id), robust=True)
            return order

        result = IdempotencyGuard.run(intent.id, create)
        if not result.replayed:
            self.get_logger().info(
                f"Order {result.order.order_number} created",
                extra={
                    "order_id": str(result.order.id),
                    "payment_intent_id": intent.id,
                    "source": str(source),
                    "amount_cents": split.amount_cents,
                },
            )
            self.audit.record(
                "order_created",
                actor_id=buyer.id,
                order_id=result.order.id,
                payment_intent_id=intent.id,
                source=str(source),
                amount_cents=split.amount_cents,
                platform_fee_cents=split.platform_fee_cents,
                seller_amount_cents=split.seller_amount_cents,
            )
        return ConfirmResult(order=result.order, replayed=result.replayed)

    # -------------------------------------------------------------------------
    # Escrow release
    # -------------------------------------------------------------------------

    def release_escrow(
        self,
        order_id,
        actor=None,
        source: str = HistorySource.ADMIN,
        reason: str = "Escrow released",
    ) -> Order:
        """
        Capture held funds for a delivered order and pay the seller.

        If the capture outcome is unknown (timeout, provider outage) nothing
        is written locally and a reconciliation task is queued.

        Raises:
            InvalidEscrowState: Escrow is not held or the order is not delivered
            StripeError: Capture failed
        """
        return self._release(order_id, OrderStatus.DELIVERED, actor, source, reason)

    def release_disputed(self, order_id, actor=None, reason: str = "Dispute resolved for seller") -> Order:
        """Release held funds for a disputed order to the seller."""
        return self._release(order_id, OrderStatus.DISPUTED, actor, HistorySource.ADMIN, reason)

    def _release(self, order_id, expected_status: str, actor, source: str, reason: str) -> Order:
        try:
            with transaction.atomic():
                order = OrderStore.get_for_update(order_id)
                self._require_held(order, expected_status)
                self.stripe.capture_payment_intent(
                    order.external_payment_reference,
                    idempotency_key=IdempotencyKeyGenerator.generate("capture", order.id),
                )
                self._apply_release(order, actor, source, reason)
        except (StripeTimeoutError, StripeAPIUnavailableError) as e:
            from payments.tasks import reconcile_escrow_capture

            self.get_logger().warning(
                "Escrow capture outcome unknown, scheduling reconciliation",
                extra={"order_id": str(order_id), "error_code": e.error_code},
            )
            self.audit.record(
                "escrow_capture_uncertain",
                severity="warning",
                actor_id=getattr(actor, "id", None),
                order_id=order_id,
                error_code=e.error_code,
            )
            reconcile_escrow_capture.apply_async(
                args=[str(order_id)], countdown=RECONCILE_COUNTDOWN_SECONDS
            )
            raise

        self.audit.record(
            "payout_released",
            actor_id=getattr(actor, "id", None),
            order_id=order.id,
            amount_cents=order.seller_amount_cents,
            source=str(source),
        )
        return order

    @staticmethod
    def _require_held(order: Order, expected_status: str) -> None:
        if order.escrow_status != EscrowStatus.HELD or order.status != expected_status:
            raise InvalidEscrowState(
                f"Order must be {expected_status} with escrow held",
                details={
                    "order_id": str(order.id),
                    "status": order.status,
                    "escrow_status": order.escrow_status,
                },
            )

    def _apply_release(self, order: Order, actor, source: str, reason: str) -> None:
        OrderStateMachine.transition(
            order,
            OrderStatus.COMPLETED,
            actor=actor,
            source=source,
            reason=reason,
            escrow_status=EscrowStatus.RELEASED,
            audit_sink=self.audit,
        )
        self._write_ledger(
            order,
            TransactionType.PAYOUT,
            order.seller_amount_cents,
            order.external_payment_reference,
        )
        self.get_logger().info(
            f"Escrow released for order {order.order_number}",
            extra={"order_id": str(order.id), "amount_cents": order.seller_amount_cents},
        )

    def reconcile_capture(self, order_id) -> bool:
        """
        Settle a release whose capture call had an unknown outcome.

        Covers buyer or admin releases of delivered orders and
        release_to_seller resolutions of disputed ones; for the latter the
        active dispute is resolved in the same transaction.

        Returns:
            True when the local release was applied
        """
        order = OrderStore.get(order_id)
        if not self._awaiting_capture(order):
            return False

        intent = self.stripe.retrieve_payment_intent(order.external_payment_reference)
        if intent.status != "succeeded":
            self.get_logger().info(
                "Capture not confirmed by provider, order left unchanged",
                extra={"order_id": str(order.id), "intent_status": intent.status},
            )
            return False

        note = "Capture confirmed by reconciliation"
        with transaction.atomic():
            order = OrderStore.get_for_update(order_id)
            if not self._awaiting_capture(order):
                return False
            was_disputed = order.status == OrderStatus.DISPUTED
            self._apply_release(order, None, HistorySource.SYSTEM, note)
            if was_disputed:
                self._settle_dispute(order, DisputeResolution.RELEASE_TO_SELLER, note)

        self.audit.record(
            "payout_released",
            order_id=order.id,
            amount_cents=order.seller_amount_cents,
            source=HistorySource.SYSTEM,
        )
        return True

    @staticmethod
    def _awaiting_capture(order: Order) -> bool:
        return order.status in RECONCILABLE_STATUSES and order.escrow_status == EscrowStatus.HELD

    @staticmethod
    def _settle_dispute(order: Order, resolution: str | None, note: str) -> None:
        from disputes.services import DisputeResolver

        DisputeResolver.settle_for_order(order, resolution, note)

    # -------------------------------------------------------------------------
    # Refunds and cancellation
    # -------------------------------------------------------------------------

    def refund(self, order_id, amount_cents: int | None = None, actor=None, reason: str = "") -> Order:
        """
        Return a disputed order's money to the buyer.

        Held escrow is voided by cancelling the uncaptured intent; it can
        only be returned in full. Captured payments are refunded at Stripe.

        Raises:
            InvalidEscrowState: Order is not disputed
            ValidationError: Invalid refund amount
            StripeError: Provider call failed
        """
        with transaction.atomic():
            order = OrderStore.get_for_update(order_id)
            if order.status != OrderStatus.DISPUTED:
                raise InvalidEscrowState(
                    "Only disputed orders can be refunded",
                    details={"order_id": str(order.id), "status": order.status},
                )
            amount = order.amount_cents if amount_cents is None else amount_cents
            if not 0 < amount <= order.amount_cents:
                raise ValidationError(
                    "Refund amount must be positive and at most the order amount",
                    error_code="INVALID_REFUND_AMOUNT",
                    details={"amount_cents": amount, "order_amount_cents": order.amount_cents},
                )

            if order.escrow_status == EscrowStatus.HELD:
                if amount != order.amount_cents:
                    raise ValidationError(
                        "Held escrow is refunded in full; use a partial settlement instead",
                        error_code="PARTIAL_REFUND_OF_HELD_ESCROW",
                        details={"order_id": str(order.id)},
                    )
                self.stripe.cancel_payment_intent(
                    order.external_payment_reference,
                    idempotency_key=IdempotencyKeyGenerator.generate("cancel", order.id),
                )
                external_reference = order.external_payment_reference
            else:
                refund = self.stripe.create_refund(
                    order.external_payment_reference,
                    idempotency_key=IdempotencyKeyGenerator.generate("refund", order.id),
                    amount_cents=amount,
                    reason="requested_by_customer",
                    metadata={"order_id": str(order.id)},
                )
                external_reference = refund.id

            OrderStateMachine.transition(
                order,
                OrderStatus.REFUNDED,
                actor=actor,
                source=HistorySource.ADMIN,
                reason=reason or "Refunded to buyer",
                escrow_status=EscrowStatus.REFUNDED,
                audit_sink=self.audit,
            )
            self._write_ledger(order, TransactionType.REFUND, amount, external_reference)

        self.audit.record(
            "refund_issued",
            actor_id=getattr(actor, "id", None),
            order_id=order.id,
            amount_cents=amount,
            source=HistorySource.ADMIN,
        )
        return order

    def partial_settlement(
        self,
        order_id,
        refund_amount_cents: int,
        actor=None,
        reason: str = "Partial refund",
    ) -> Order:
        """
        Split a disputed order's held funds between buyer and seller.

        Captures ``amount - refund_amount_cents``; Stripe releases the rest of
        the authorization back to the buyer.
        """
        with transaction.atomic():
            order = OrderStore.get_for_update(order_id)
            self._require_held(order, OrderStatus.DISPUTED)
            if not 0 < refund_amount_cents < order.amount_cents:
                raise ValidationError(
                    "Partial refund must be between zero and the order amount",
                    error_code="INVALID_REFUND_AMOUNT",
                    details={
                        "refund_amount_cents": refund_amount_cents,
                        "order_amount_cents": order.amount_cents,
                    },
                )

            captured_cents = order.amount_cents - refund_amount_cents
            self.stripe.capture_payment_intent(
                order.external_payment_reference,
                idempotency_key=IdempotencyKeyGenerator.generate("partial_capture", order.id),
                amount_to_capture=captured_cents,
            )
            captured = calculate_fee_split(captured_cents)

            OrderStateMachine.transition(
                order,
                OrderStatus.COMPLETED,
                actor=actor,
                source=HistorySource.ADMIN,
                reason=reason,
                escrow_status=EscrowStatus.RELEASED,
                audit_sink=self.audit,
            )
            self._write_ledger(
                order,
                TransactionType.REFUND,
                refund_amount_cents,
                order.external_payment_reference,
                metadata={"partial": True},
            )
            self._write_ledger(
                order,
                TransactionType.PAYOUT,
                captured.seller_amount_cents,
                order.external_payment_reference,
                platform_fee_cents=captured.platform_fee_cents,
                metadata={"partial": True, "captured_cents": captured_cents},
            )

        self.audit.record(
            "refund_issued",
            actor_id=getattr(actor, "id", None),
            order_id=order.id,
            amount_cents=refund_amount_cents,
            partial=True,
        )
        self.audit.record(
            "payout_released",
            actor_id=getattr(actor, "id", None),
            order_id=order.id,
            amount_cents=captured.seller_amount_cents,
            partial=True,
        )
        return order

    def cancel_order(self, order_id, actor=None, reason: str = "") -> Order:
        """
        Cancel an order before delivery, voiding held escrow.

        Raises:
            IllegalTransition: The order can no longer be cancelled
            StripeError: Voiding the authorization failed
        """
        with transaction.atomic():
            order = OrderStore.get_for_update(order_id)
            if order.status not in CANCELLABLE_STATUSES:
                raise IllegalTransition(
                    f"Cannot cancel an order that is {order.status}",
                    details={"order_id": str(order.id), "status": order.status},
                )

            was_held = order.escrow_status == EscrowStatus.HELD
            if was_held:
                self.stripe.cancel_payment_intent(
                    order.external_payment_reference,
                    idempotency_key=IdempotencyKeyGenerator.generate("cancel", order.id),
                )

            OrderStateMachine.transition(
                order,
                OrderStatus.CANCELLED,
                actor=actor,
                source=HistorySource.CLIENT if actor is not None else HistorySource.SYSTEM,
                reason=reason or "Order cancelled",
                escrow_status=EscrowStatus.REFUNDED if was_held else None,
                audit_sink=self.audit,
            )
            if was_held:
                self._write_ledger(
                    order,
                    TransactionType.REFUND,
                    order.amount_cents,
                    order.external_payment_reference,
                    metadata={"cancelled": True},
                )

        if was_held:
            self.audit.record(
                "refund_issued",
                actor_id=getattr(actor, "id", None),
                order_id=order.id,
                amount_cents=order.amount_cents,
                cancelled=True,
            )
        return order

    def cancel_for_failed_payment(self, provider_reference: str, reason: str) -> Order | None:
        """
        Cancel the order of a PaymentIntent that failed or was cancelled at
        the provider. The authorization is already gone, so Stripe is not
        called. Returns None when there is nothing to cancel.
        """
        with transaction.atomic():
            order = OrderStore.find_by_reference(provider_reference, for_update=True)
            if order is None or not is_legal_transition(order.status, OrderStatus.CANCELLED):
                self.get_logger().info(
                    "No cancellable order for failed payment",
                    extra={
                        "payment_intent_id": provider_reference,
                        "status": getattr(order, "status", None),
                    },
                )
                return None

            was_held = order.escrow_status == EscrowStatus.HELD
            OrderStateMachine.transition(
                order,
                OrderStatus.CANCELLED,
                source=HistorySource.WEBHOOK,
                reason=reason,
                escrow_status=EscrowStatus.REFUNDED if was_held else None,
                audit_sink=self.audit,
            )
            if was_held:
                self._write_ledger(
                    order,
                    TransactionType.REFUND,
                    order.amount_cents,
                    provider_reference,
                    metadata={"provider_initiated": True},
                )
        return order

    def apply_provider_refund(
        self,
        provider_reference: str,
        amount_refunded_cents: int | None = None,
        external_reference: str = "",
    ) -> ProviderRefundResult:
        """
        Record a refund the provider already issued.

        A second delivery of the same refund finds the order refunded and
        returns ``applied=False`` without writing anything.
        """
        with transaction.atomic():
            order = OrderStore.find_by_reference(provider_reference, for_update=True)
            if order is None:
                self.get_logger().warning(
                    "Provider refund for unknown payment",
                    extra={"payment_intent_id": provider_reference},
                )
                return ProviderRefundResult(order=None, applied=False)
            if order.status == OrderStatus.REFUNDED:
                return ProviderRefundResult(order=order, applied=False)
            if not is_legal_transition(order.status, OrderStatus.REFUNDED, provider_initiated=True):
                self.get_logger().warning(
                    f"Provider refund ignored for {order.status} order",
                    extra={"order_id": str(order.id), "payment_intent_id": provider_reference},
                )
                return ProviderRefundResult(order=order, applied=False)

            amount = amount_refunded_cents or order.amount_cents
            was_disputed = order.status == OrderStatus.DISPUTED
            OrderStateMachine.transition(
                order,
                OrderStatus.REFUNDED,
                source=HistorySource.PROVIDER,
                reason="Refunded by payment provider",
                escrow_status=EscrowStatus.REFUNDED,
                provider_initiated=True,
                audit_sink=self.audit,
            )
            self._write_ledger(
                order,
                TransactionType.REFUND,
                amount,
                external_reference or provider_reference,
                metadata={"provider_initiated": True},
            )
            if was_disputed:
                self._settle_dispute(order, None, "Refunded by payment provider")

        self.audit.record(
            "refund_issued",
            order_id=order.id,
            amount_cents=amount,
            source=HistorySource.PROVIDER,
        )
        return ProviderRefundResult(order=order, applied=True)

    @staticmethod
    def _write_ledger(
        order: Order,
        type: str,
        amount_cents: int,
        external_reference: str,
        platform_fee_cents: int = 0,
        metadata: dict[str, Any] | None = None,
    ) -> Transaction:
        return Transaction.objects.create(
            order=order,
            buyer=order.buyer,
            seller=order.seller,
            type=type,
            amount_cents=amount_cents,
            platform_fee_cents=platform_fee_cents,
            currency=order.currency,
            external_reference=external_reference,
            status=TransactionStatus.COMPLETED,
            metadata=metadata or {},
        )


def _queue_contract(order_id) -> None:
    from contracts.tasks import generate_contract

    generate_contract.delay(str(order_id))
