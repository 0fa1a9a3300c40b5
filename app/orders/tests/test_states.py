"""
Tests for the order transition table.
"""

import pytest

from orders.states import (
    ALLOWED_TRANSITIONS,
    CANCELLABLE_STATUSES,
    PROVIDER_REFUND_SOURCES,
    TERMINAL_STATUSES,
    OrderStatus,
    is_legal_transition,
)


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(OrderStatus.values)

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {
            OrderStatus.COMPLETED,
            OrderStatus.CANCELLED,
            OrderStatus.REFUNDED,
        }

    def test_cancellation_only_before_delivery(self):
        assert CANCELLABLE_STATUSES == {
            OrderStatus.PENDING,
            OrderStatus.AWAITING_UPLOAD,
            OrderStatus.IN_PROGRESS,
            OrderStatus.AWAITING_DELIVERY,
        }

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            ("pending", "awaiting_upload"),
            ("pending", "completed"),
            ("awaiting_upload", "in_progress"),
            ("in_progress", "awaiting_delivery"),
            ("awaiting_delivery", "delivered"),
            ("delivered", "completed"),
            ("delivered", "disputed"),
            ("disputed", "refunded"),
            ("disputed", "completed"),
        ],
    )
    def test_legal_transitions(self, from_status, to_status):
        assert is_legal_transition(from_status, to_status) is True

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            ("pending", "delivered"),
            ("awaiting_upload", "delivered"),
            ("delivered", "cancelled"),
            ("delivered", "refunded"),
            ("completed", "refunded"),
            ("completed", "cancelled"),
            ("cancelled", "pending"),
            ("refunded", "completed"),
            ("disputed", "cancelled"),
        ],
    )
    def test_illegal_transitions(self, from_status, to_status):
        assert is_legal_transition(from_status, to_status) is False

    def test_unknown_status_is_never_legal(self):
        assert is_legal_transition("archived", "completed") is False


class TestProviderInitiatedRefund:
    @pytest.mark.parametrize("from_status", sorted(PROVIDER_REFUND_SOURCES))
    def test_provider_refund_allowed_from_money_holding_states(self, from_status):
        assert is_legal_transition(from_status, OrderStatus.REFUNDED, provider_initiated=True)

    @pytest.mark.parametrize("from_status", ["cancelled", "refunded"])
    def test_provider_refund_not_allowed_from_closed_states(self, from_status):
        assert not is_legal_transition(from_status, OrderStatus.REFUNDED, provider_initiated=True)

    def test_provider_flag_does_not_widen_other_targets(self):
        assert not is_legal_transition("completed", "cancelled", provider_initiated=True)
