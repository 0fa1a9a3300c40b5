"""
Tests for Order and OrderStatusHistory models.
"""

import re

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from freezegun import freeze_time

from core.exceptions import InvariantViolationError
from orders.models import Order, OrderStatusHistory, generate_order_number
from orders.state_machine import OrderStateMachine
from orders.states import EscrowStatus, OrderStatus
from orders.tests.factories import InstantOrderFactory, OrderFactory


class TestOrderNumber:
    def test_format(self):
        assert re.fullmatch(r"ORD-\d{13}-[A-Z0-9]{9}", generate_order_number())

    def test_numbers_differ(self):
        assert generate_order_number() != generate_order_number()


@pytest.mark.django_db
class TestOrder:
    def test_new_order_is_pending_without_escrow(self):
        order = OrderFactory()

        assert order.status == OrderStatus.PENDING
        assert order.escrow_status == EscrowStatus.NONE
        assert order.order_number.startswith("ORD-")

    def test_status_cannot_be_assigned_directly(self):
        order = OrderFactory()

        with pytest.raises(AttributeError):
            order.status = OrderStatus.COMPLETED

    def test_amount_split_adds_up(self):
        order = InstantOrderFactory()

        assert order.amount_cents == 5000
        assert order.platform_fee_cents == 400
        assert order.seller_amount_cents == 4600

    def test_clean_rejects_mismatched_split(self):
        order = OrderFactory.build(amount_cents=1000, platform_fee_cents=80, seller_amount_cents=900)

        with pytest.raises(ValidationError):
            order.clean()

    def test_database_rejects_mismatched_split(self):
        order = OrderFactory()

        with pytest.raises(IntegrityError):
            Order.objects.filter(pk=order.pk).update(seller_amount_cents=1)

    def test_payment_reference_is_unique(self):
        order = OrderFactory()

        with pytest.raises(IntegrityError):
            OrderFactory(
                external_payment_reference=order.external_payment_reference,
                service=order.service,
            )

    def test_version_increments_on_save(self):
        order = OrderFactory()
        assert order.version == 1

        order.save()

        assert order.version == 2


@pytest.mark.django_db
class TestOrderStatusHistory:
    def test_creation_row_is_written(self):
        order = OrderFactory()

        rows = list(OrderStatusHistory.objects.filter(order=order))
        assert len(rows) == 1
        assert rows[0].from_status is None
        assert rows[0].to_status == OrderStatus.PENDING

    def test_rows_cannot_be_updated(self):
        order = OrderFactory()
        row = OrderStatusHistory.objects.get(order=order)
        row.reason = "edited"

        with pytest.raises(InvariantViolationError) as exc_info:
            row.save()

        assert exc_info.value.error_code == "IMMUTABLE_RECORD"

    def test_rows_cannot_be_deleted(self):
        order = OrderFactory()
        row = OrderStatusHistory.objects.get(order=order)

        with pytest.raises(InvariantViolationError):
            row.delete()

    def test_rows_keep_insertion_order_when_clock_goes_back(self):
        order = OrderFactory(advance_to=OrderStatus.AWAITING_UPLOAD)

        with freeze_time("2020-01-01 00:00:00"):
            OrderStateMachine.transition(order, OrderStatus.IN_PROGRESS)

        statuses = [row.to_status for row in Order.objects.get(pk=order.pk).status_history.all()]
        assert statuses[-1] == OrderStatus.IN_PROGRESS
        assert statuses == [OrderStatus.PENDING, OrderStatus.AWAITING_UPLOAD, OrderStatus.IN_PROGRESS]
