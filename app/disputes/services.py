"""
Dispute service layer.

DisputeResolver opens disputes on delivered orders and settles them by
driving the escrow manager: a refund to the buyer, a release to the seller,
or a split of the held funds.

Usage:
    from disputes.services import DisputeResolver

    resolver = DisputeResolver()
    dispute = resolver.create_dispute(order.id, buyer, "quality_issue", "Mix is clipping")
    resolver.resolve_dispute(dispute.id, "release_to_seller", admin)
"""

from __future__ import annotations

from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from core.audit import get_audit_sink
from core.exceptions import PermissionDeniedError, ValidationError
from core.protocols import AuditSink
from core.services import BaseService
from disputes.exceptions import (
    ActiveDisputeExistsError,
    AlreadyResolvedError,
    DisputeNotFoundError,
)
from disputes.models import Dispute
from disputes.states import (
    ACTIVE_STATUSES,
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    MAX_EVIDENCE_URLS,
    DisputeReason,
    DisputeResolution,
    DisputeStatus,
)
from orders.state_machine import OrderStateMachine
from orders.states import HistorySource, OrderStatus
from orders.store import OrderStore


def _validate_description(description: str) -> str:
    description = (description or "").strip()
    if not DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description must be between {DESCRIPTION_MIN_LENGTH} and "
            f"{DESCRIPTION_MAX_LENGTH} characters",
            error_code="INVALID_DESCRIPTION",
        )
    return description


def _validate_evidence(evidence_urls, existing=()) -> list[str]:
    urls = [*existing, *(evidence_urls or [])]
    if len(urls) > MAX_EVIDENCE_URLS:
        raise ValidationError(
            f"At most {MAX_EVIDENCE_URLS} evidence links are allowed",
            error_code="TOO_MUCH_EVIDENCE",
        )
    return urls


class DisputeResolver(BaseService):
    """
    Opens, updates and settles disputes.

    Every money movement goes through the injected EscrowPaymentManager, so
    ledger rows and order transitions are written the same way as for
    buyer-approved orders.
    """

    def __init__(self, escrow_manager=None, audit_sink: AuditSink | None = None):
        self.audit = audit_sink or get_audit_sink()
        if escrow_manager is None:
            from payments.services import EscrowPaymentManager

            escrow_manager = EscrowPaymentManager(audit_sink=self.audit)
        self.escrow = escrow_manager

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def get(dispute_id) -> Dispute:
        try:
            return Dispute.objects.select_related("order").get(pk=dispute_id)
        except Dispute.DoesNotExist:
            raise DisputeNotFoundError(
                "Dispute not found",
                details={"dispute_id": str(dispute_id)},
            ) from None

    def get_for_party(self, dispute_id, user) -> Dispute:
        """Fetch a dispute visible to a party of its order or to staff."""
        dispute = self.get(dispute_id)
        if not (user.is_staff or dispute.order.is_party(user)):
            raise PermissionDeniedError(
                "Not authorized to view this dispute",
                error_code="NOT_DISPUTE_PARTY",
            )
        return dispute

    @staticmethod
    def for_user(user, status: str | None = None) -> QuerySet[Dispute]:
        """Disputes on orders where ``user`` is the buyer or the seller."""
        queryset = Dispute.objects.filter(Q(order__buyer=user) | Q(order__seller=user))
        if status:
            queryset = queryset.filter(status=status)
        return queryset.select_related("order", "raised_by")

    @staticmethod
    def queue(status: str | None = None) -> QuerySet[Dispute]:
        """All disputes for admins, newest first, optionally by status."""
        queryset = Dispute.objects.all()
        if status:
            queryset = queryset.filter(status=status)
        return queryset.select_related("order", "raised_by").order_by("-created_at")

    @staticmethod
    def stats() -> dict:
        """Dispute counts by status and by reason."""
        by_status = dict.fromkeys(DisputeStatus.values, 0)
        for row in Dispute.objects.values("status").annotate(count=Count("id")):
            by_status[row["status"]] = row["count"]

        by_reason = dict.fromkeys(DisputeReason.values, 0)
        for row in Dispute.objects.values("reason").annotate(count=Count("id")):
            by_reason[row["reason"]] = row["count"]

        return {
            "total": sum(by_status.values()),
            "active": sum(by_status[s] for s in ACTIVE_STATUSES),
            "by_status": by_status,
            "by_reason": by_reason,
        }

    # -------------------------------------------------------------------------
    # Parties
    # -------------------------------------------------------------------------

    def create_dispute(
        self,
        order_id,
        raised_by,
        reason: str,
        description: str,
        evidence_urls=(),
    ) -> Dispute:
        """
        Open a dispute on a delivered order.

        The order moves to disputed in the same transaction as the dispute
        row is written, which freezes the held escrow until an admin
        resolves it.

        Raises:
            ValidationError: Unknown reason or bad description
            OrderNotFoundError: Unknown order
            PermissionDeniedError: Caller is neither buyer nor seller
            ActiveDisputeExistsError: Order already has an active dispute
            IllegalTransition: Order is not delivered
        """
        if reason not in DisputeReason.values:
            raise ValidationError(
                f"Invalid dispute reason: {reason}",
                error_code="INVALID_DISPUTE_REASON",
                details={"allowed": list(DisputeReason.values)},
            )
        description = _validate_description(description)
        evidence = _validate_evidence(evidence_urls)

        with self.atomic():
            order = OrderStore.get_for_update(order_id)
            if not order.is_party(raised_by):
                raise PermissionDeniedError(
                    "Only the buyer or seller can dispute this order",
                    error_code="NOT_ORDER_PARTY",
                )
            if Dispute.objects.filter(order=order, status__in=ACTIVE_STATUSES).exists():
                raise ActiveDisputeExistsError(
                    "An active dispute already exists for this order",
                    details={"order_id": str(order.id)},
                )

            OrderStateMachine.transition(
                order,
                OrderStatus.DISPUTED,
                actor=raised_by,
                source=HistorySource.CLIENT,
                reason=f"Dispute raised: {reason}",
                audit_sink=self.audit,
            )
            dispute = Dispute.objects.create(
                order=order,
                raised_by=raised_by,
                reason=reason,
                description=description,
                evidence_urls=evidence,
            )

        self.get_logger().info(
            "Dispute created",
            extra={"dispute_id": str(dispute.id), "order_id": str(order.id), "reason": reason},
        )
        self.audit.record(
            "dispute_created",
            actor_id=raised_by.id,
            order_id=order.id,
            dispute_id=str(dispute.id),
            reason=reason,
        )
        return dispute

    def update_dispute(self, dispute_id, user, description: str | None = None, evidence_urls=None) -> Dispute:
        """
        Reporter edits the description or adds evidence while the dispute is open.

        New evidence links are appended to the existing ones.
        """
        with self.atomic():
            dispute = self._get_for_update(dispute_id)
            if dispute.raised_by_id != user.id:
                raise PermissionDeniedError(
                    "Only the reporter can update this dispute",
                    error_code="NOT_DISPUTE_REPORTER",
                )
            if dispute.status != DisputeStatus.OPEN:
                raise AlreadyResolvedError(
                    f"Cannot update a dispute with status: {dispute.status}",
                    details={"dispute_id": str(dispute.id), "status": dispute.status},
                )
            if description is not None:
                dispute.description = _validate_description(description)
            if evidence_urls:
                dispute.evidence_urls = _validate_evidence(evidence_urls, dispute.evidence_urls)
            dispute.save()
        return dispute

    def respond(self, dispute_id, user, message: str) -> Dispute:
        """
        The other party answers the dispute.

        The first response moves an open dispute to under_review.
        """
        message = (message or "").strip()
        if not message:
            raise ValidationError("Response is required", error_code="RESPONSE_REQUIRED")

        with self.atomic():
            dispute = self._get_for_update(dispute_id)
            if not dispute.order.is_party(user) or dispute.raised_by_id == user.id:
                raise PermissionDeniedError(
                    "Only the other party can respond to this dispute",
                    error_code="NOT_DISPUTE_COUNTERPARTY",
                )
            if not dispute.is_active:
                raise AlreadyResolvedError(
                    f"Cannot respond to a dispute with status: {dispute.status}",
                    details={"dispute_id": str(dispute.id), "status": dispute.status},
                )
            dispute.responses = [
                *dispute.responses,
                {
                    "user_id": str(user.id),
                    "message": message[:DESCRIPTION_MAX_LENGTH],
                    "created_at": timezone.now().isoformat(),
                },
            ]
            if dispute.status == DisputeStatus.OPEN:
                dispute.start_review()
            dispute.save()
        return dispute

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    def resolve_dispute(
        self,
        dispute_id,
        resolution: str,
        admin,
        admin_notes: str = "",
        refund_amount_cents: int | None = None,
    ) -> Dispute:
        """
        Settle a dispute and move the disputed funds.

        refund_buyer returns the whole amount to the buyer, release_to_seller
        pays the seller, partial_refund returns ``refund_amount_cents`` and
        pays the rest out. The dispute row is locked for the whole operation,
        so a concurrent or repeated call fails with AlreadyResolvedError and
        moves no money.

        Raises:
            PermissionDeniedError: Caller is not staff
            ValidationError: Unknown resolution or missing refund amount
            DisputeNotFoundError: Unknown dispute
            AlreadyResolvedError: Dispute is no longer active
            InvalidEscrowState, StripeError: From the escrow manager
        """
        if not admin.is_staff:
            raise PermissionDeniedError("Only admins can resolve disputes", error_code="ADMIN_REQUIRED")
        if resolution not in DisputeResolution.values:
            raise ValidationError(
                f"Invalid resolution: {resolution}",
                error_code="INVALID_RESOLUTION",
                details={"allowed": list(DisputeResolution.values)},
            )
        if resolution == DisputeResolution.PARTIAL_REFUND and not refund_amount_cents:
            raise ValidationError(
                "refund_amount_cents is required for a partial refund",
                error_code="REFUND_AMOUNT_REQUIRED",
            )
        if resolution != DisputeResolution.PARTIAL_REFUND:
            refund_amount_cents = None

        with self.atomic():
            dispute = self._get_for_update(dispute_id)
            if not dispute.is_active:
                raise AlreadyResolvedError(
                    "Dispute has already been resolved",
                    details={"dispute_id": str(dispute.id), "status": dispute.status},
                )

            reason = f"Dispute resolved: {resolution}"
            if resolution == DisputeResolution.REFUND_BUYER:
                order = self.escrow.refund(dispute.order_id, actor=admin, reason=reason)
                refund_amount_cents = order.amount_cents
            elif resolution == DisputeResolution.RELEASE_TO_SELLER:
                self.escrow.release_disputed(dispute.order_id, actor=admin, reason=reason)
            else:
                self.escrow.partial_settlement(
                    dispute.order_id, refund_amount_cents, actor=admin, reason=reason
                )

            dispute.resolve(
                resolution,
                admin,
                admin_notes=admin_notes,
                refund_amount_cents=refund_amount_cents,
            )
            dispute.save()

        self.get_logger().info(
            "Dispute resolved",
            extra={
                "dispute_id": str(dispute.id),
                "order_id": str(dispute.order_id),
                "resolution": resolution,
            },
        )
        self.audit.record(
            "dispute_resolved",
            actor_id=admin.id,
            order_id=dispute.order_id,
            dispute_id=str(dispute.id),
            resolution=resolution,
            refund_amount_cents=refund_amount_cents,
        )
        return dispute

    @staticmethod
    def settle_for_order(order, resolution: str | None = None, note: str = "") -> Dispute | None:
        """
        Finish the order's active dispute after its money moved elsewhere.

        Used by the escrow manager when a capture is confirmed by
        reconciliation (resolved with ``resolution``) or the provider
        refunded the order (closed). Must run inside the caller's
        transaction.
        """
        dispute = (
            Dispute.objects.select_for_update()
            .filter(order=order, status__in=ACTIVE_STATUSES)
            .first()
        )
        if dispute is None:
            return None
        if resolution:
            dispute.resolve(resolution, None, admin_notes=note)
        else:
            dispute.close(admin_notes=note)
        dispute.save()
        return dispute

    @staticmethod
    def _get_for_update(dispute_id) -> Dispute:
        try:
            return Dispute.objects.select_for_update().select_related("order").get(pk=dispute_id)
        except Dispute.DoesNotExist:
            raise DisputeNotFoundError(
                "Dispute not found",
                details={"dispute_id": str(dispute_id)},
            ) from None
