"""
Tests for DisputeResolver.

Money movements run through a real EscrowPaymentManager backed by the
in-memory FakeStripeAdapter.
"""

from unittest.mock import Mock, patch

import pytest

from accounts.tests.factories import UserFactory
from core.exceptions import PermissionDeniedError, ValidationError
from disputes.exceptions import (
    ActiveDisputeExistsError,
    AlreadyResolvedError,
    DisputeNotFoundError,
)
from disputes.models import Dispute
from disputes.services import DisputeResolver
from disputes.states import DisputeReason, DisputeResolution, DisputeStatus
from disputes.tests.factories import DisputeFactory
from orders.exceptions import IllegalTransition, InvalidEscrowState
from orders.models import Order
from orders.states import EscrowStatus, OrderStatus
from orders.tests.factories import OrderFactory
from payments.exceptions import StripeTimeoutError
from payments.models import Transaction
from payments.state_machines import TransactionType
from payments.tests.fakes import make_intent

DESCRIPTION = "The seller delivered the wrong stems for this track."


def reload(order):
    return Order.objects.get(pk=order.pk)


@pytest.mark.django_db
class TestCreateDispute:
    def test_buyer_opens_dispute(self, resolver, delivered_order, audit_sink):
        dispute = resolver.create_dispute(
            delivered_order.id,
            delivered_order.buyer,
            DisputeReason.WRONG_FILES,
            DESCRIPTION,
            evidence_urls=["https://files.example.com/a.wav"],
        )

        order = reload(delivered_order)
        assert dispute.status == DisputeStatus.OPEN
        assert dispute.evidence_urls == ["https://files.example.com/a.wav"]
        assert order.status == OrderStatus.DISPUTED
        assert order.escrow_status == EscrowStatus.HELD
        assert order.status_history.last().to_status == OrderStatus.DISPUTED
        assert audit_sink.events_named("dispute_created")[0].order_id == order.id

    def test_seller_can_open_dispute(self, resolver, delivered_order):
        dispute = resolver.create_dispute(
            delivered_order.id, delivered_order.seller, DisputeReason.COMMUNICATION_ISSUE, DESCRIPTION
        )

        assert dispute.raised_by == delivered_order.seller

    def test_outsider_is_rejected(self, resolver, delivered_order):
        with pytest.raises(PermissionDeniedError):
            resolver.create_dispute(delivered_order.id, UserFactory(), DisputeReason.OTHER, DESCRIPTION)

        assert reload(delivered_order).status == OrderStatus.DELIVERED

    def test_only_delivered_orders(self, resolver):
        order = OrderFactory(advance_to=OrderStatus.IN_PROGRESS)

        with pytest.raises(IllegalTransition):
            resolver.create_dispute(order.id, order.buyer, DisputeReason.NOT_DELIVERED, DESCRIPTION)

        assert not Dispute.objects.filter(order=order).exists()

    def test_second_active_dispute_conflicts(self, resolver, dispute):
        with pytest.raises(ActiveDisputeExistsError):
            resolver.create_dispute(
                dispute.order_id, dispute.order.seller, DisputeReason.OTHER, DESCRIPTION
            )

    @pytest.mark.parametrize(
        "reason,description",
        [
            ("refund_please", DESCRIPTION),
            (DisputeReason.OTHER, "too short"),
            (DisputeReason.OTHER, "x" * 5001),
        ],
    )
    def test_input_validation(self, resolver, delivered_order, reason, description):
        with pytest.raises(ValidationError):
            resolver.create_dispute(delivered_order.id, delivered_order.buyer, reason, description)


@pytest.mark.django_db
class TestUpdateAndRespond:
    def test_reporter_appends_evidence(self, resolver, dispute):
        updated = resolver.update_dispute(
            dispute.id,
            dispute.raised_by,
            evidence_urls=["https://files.example.com/b.wav"],
        )

        assert updated.evidence_urls == [
            "https://files.example.com/clip.wav",
            "https://files.example.com/b.wav",
        ]

    def test_only_reporter_updates(self, resolver, dispute):
        with pytest.raises(PermissionDeniedError):
            resolver.update_dispute(dispute.id, dispute.order.seller, description=DESCRIPTION)

    def test_update_after_review_started_conflicts(self, resolver, dispute):
        resolver.respond(dispute.id, dispute.order.seller, "Files were correct.")

        with pytest.raises(AlreadyResolvedError):
            resolver.update_dispute(dispute.id, dispute.raised_by, description=DESCRIPTION)

    def test_counterparty_response_moves_to_review(self, resolver, dispute):
        responded = resolver.respond(dispute.id, dispute.order.seller, "Files were correct.")

        assert responded.status == DisputeStatus.UNDER_REVIEW
        assert responded.responses[0]["user_id"] == str(dispute.order.seller_id)
        assert responded.responses[0]["message"] == "Files were correct."

    def test_reporter_cannot_respond(self, resolver, dispute):
        with pytest.raises(PermissionDeniedError):
            resolver.respond(dispute.id, dispute.raised_by, "Answering myself")

    def test_empty_response(self, resolver, dispute):
        with pytest.raises(ValidationError):
            resolver.respond(dispute.id, dispute.order.seller, "   ")

    def test_unknown_dispute(self, resolver, admin_user):
        with pytest.raises(DisputeNotFoundError):
            resolver.respond("00000000-0000-0000-0000-000000000000", admin_user, "Hello")


@pytest.mark.django_db
class TestResolveDispute:
    def test_refund_buyer_voids_held_escrow(self, resolver, dispute, admin_user, stripe_adapter, audit_sink):
        resolved = resolver.resolve_dispute(
            dispute.id, DisputeResolution.REFUND_BUYER, admin_user, admin_notes="Wrong files"
        )

        order = reload(dispute.order)
        assert resolved.status == DisputeStatus.RESOLVED
        assert resolved.resolution == DisputeResolution.REFUND_BUYER
        assert resolved.refund_amount_cents == 20000
        assert order.status == OrderStatus.REFUNDED
        assert order.escrow_status == EscrowStatus.REFUNDED
        stripe_adapter.cancel_payment_intent.assert_called_once()
        refunds = Transaction.objects.filter(order=order, type=TransactionType.REFUND)
        assert [r.amount_cents for r in refunds] == [20000]
        assert audit_sink.events_named("dispute_resolved")[0].details["resolution"] == "refund_buyer"

    def test_release_to_seller_pays_out(self, resolver, dispute, admin_user, stripe_adapter):
        resolver.resolve_dispute(dispute.id, DisputeResolution.RELEASE_TO_SELLER, admin_user)

        order = reload(dispute.order)
        assert order.status == OrderStatus.COMPLETED
        assert order.escrow_status == EscrowStatus.RELEASED
        stripe_adapter.capture_payment_intent.assert_called_once()
        payouts = Transaction.objects.filter(order=order, type=TransactionType.PAYOUT)
        assert [p.amount_cents for p in payouts] == [18400]

    def test_partial_refund_splits_funds(self, resolver, dispute, admin_user, stripe_adapter):
        resolver.resolve_dispute(
            dispute.id,
            DisputeResolution.PARTIAL_REFUND,
            admin_user,
            refund_amount_cents=5000,
        )

        order = reload(dispute.order)
        assert order.status == OrderStatus.COMPLETED
        assert stripe_adapter.capture_payment_intent.call_args.kwargs["amount_to_capture"] == 15000
        ledger = {
            t.type: (t.amount_cents, t.platform_fee_cents)
            for t in Transaction.objects.filter(order=order)
        }
        assert ledger[TransactionType.REFUND][0] == 5000
        assert ledger[TransactionType.PAYOUT] == (13800, 1200)

    def test_partial_refund_requires_amount(self, resolver, dispute, admin_user):
        with pytest.raises(ValidationError):
            resolver.resolve_dispute(dispute.id, DisputeResolution.PARTIAL_REFUND, admin_user)

    def test_second_resolution_fails_without_effect(self, resolver, dispute, admin_user, stripe_adapter):
        resolver.resolve_dispute(dispute.id, DisputeResolution.RELEASE_TO_SELLER, admin_user)

        with pytest.raises(AlreadyResolvedError):
            resolver.resolve_dispute(dispute.id, DisputeResolution.REFUND_BUYER, admin_user)

        assert stripe_adapter.cancel_payment_intent.call_count == 0
        assert reload(dispute.order).status == OrderStatus.COMPLETED
        assert Dispute.objects.get(pk=dispute.pk).resolution == DisputeResolution.RELEASE_TO_SELLER

    def test_non_admin_rejected(self, resolver, dispute):
        with pytest.raises(PermissionDeniedError):
            resolver.resolve_dispute(dispute.id, DisputeResolution.REFUND_BUYER, dispute.raised_by)

    def test_escrow_failure_leaves_dispute_open(self, dispute, admin_user, audit_sink):
        escrow = Mock()
        escrow.release_disputed.side_effect = InvalidEscrowState("Escrow is not held")
        resolver = DisputeResolver(escrow_manager=escrow, audit_sink=audit_sink)

        with pytest.raises(InvalidEscrowState):
            resolver.resolve_dispute(dispute.id, DisputeResolution.RELEASE_TO_SELLER, admin_user)

        assert Dispute.objects.get(pk=dispute.pk).status == DisputeStatus.OPEN
        assert audit_sink.events_named("dispute_resolved") == []


@pytest.mark.django_db
class TestReads:
    def test_for_user_and_stats(self, dispute):
        DisputeFactory(reason=DisputeReason.NOT_DELIVERED)

        assert list(DisputeResolver.for_user(dispute.order.seller)) == [dispute]
        stats = DisputeResolver.stats()
        assert stats["total"] == 2
        assert stats["active"] == 2
        assert stats["by_status"][DisputeStatus.OPEN] == 2
        assert stats["by_reason"][DisputeReason.QUALITY_ISSUE] == 1
        assert stats["by_reason"][DisputeReason.NOT_DELIVERED] == 1


@pytest.mark.django_db
class TestSettlementOutsideResolution:
    def test_reconciled_capture_finishes_release_to_seller(
        self, resolver, dispute, admin_user, stripe_adapter
    ):
        stripe_adapter.capture_payment_intent.side_effect = StripeTimeoutError("timed out")

        with patch("payments.tasks.reconcile_escrow_capture.apply_async") as apply_async:
            with pytest.raises(StripeTimeoutError):
                resolver.resolve_dispute(dispute.id, DisputeResolution.RELEASE_TO_SELLER, admin_user)

        assert Dispute.objects.get(pk=dispute.pk).status == DisputeStatus.OPEN
        apply_async.assert_called_once()

        stripe_adapter.add(
            make_intent(
                id=dispute.order.external_payment_reference,
                status="succeeded",
                amount_cents=dispute.order.amount_cents,
            )
        )
        assert resolver.escrow.reconcile_capture(dispute.order_id) is True

        order = reload(dispute.order)
        assert order.status == OrderStatus.COMPLETED
        assert order.escrow_status == EscrowStatus.RELEASED
        payouts = Transaction.objects.filter(order=order, type=TransactionType.PAYOUT)
        assert [p.amount_cents for p in payouts] == [18400]
        settled = Dispute.objects.get(pk=dispute.pk)
        assert settled.status == DisputeStatus.RESOLVED
        assert settled.resolution == DisputeResolution.RELEASE_TO_SELLER
        assert settled.resolved_by is None
        assert DisputeResolver.stats()["active"] == 0

    def test_uncaptured_disputed_order_is_left_alone(self, resolver, dispute, stripe_adapter):
        stripe_adapter.add(
            make_intent(id=dispute.order.external_payment_reference, status="requires_capture")
        )

        assert resolver.escrow.reconcile_capture(dispute.order_id) is False

        assert reload(dispute.order).status == OrderStatus.DISPUTED
        assert Dispute.objects.get(pk=dispute.pk).status == DisputeStatus.OPEN

    def test_provider_refund_closes_active_dispute(self, resolver, dispute, admin_user):
        result = resolver.escrow.apply_provider_refund(
            dispute.order.external_payment_reference,
            amount_refunded_cents=dispute.order.amount_cents,
            external_reference="re_provider",
        )

        assert result.applied is True
        assert reload(dispute.order).status == OrderStatus.REFUNDED
        closed = Dispute.objects.get(pk=dispute.pk)
        assert closed.status == DisputeStatus.CLOSED
        assert closed.resolved_at is not None
        assert DisputeResolver.stats()["active"] == 0

        with pytest.raises(AlreadyResolvedError):
            resolver.resolve_dispute(dispute.id, DisputeResolution.REFUND_BUYER, admin_user)
