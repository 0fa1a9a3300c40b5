"""
DRF serializers for the payments API.

Request serializers validate input only; the EscrowPaymentManager enforces
business rules.
"""

from __future__ import annotations

from rest_framework import serializers

from orders.serializers import OrderSerializer
from payments.models import Transaction
from payments.state_machines import TransactionStatus, TransactionType


class CreateIntentSerializer(serializers.Serializer):
    service_id = serializers.UUIDField()
    idempotency_key = serializers.CharField(max_length=255, required=False, allow_blank=False)


class IntentQuoteSerializer(serializers.Serializer):
    client_secret = serializers.CharField(allow_null=True)
    payment_intent_id = serializers.CharField()
    amount_cents = serializers.IntegerField()
    platform_fee_cents = serializers.IntegerField()
    seller_amount_cents = serializers.IntegerField()
    is_escrow = serializers.BooleanField()
    idempotency_key = serializers.CharField()
    currency = serializers.CharField()


class ConfirmPaymentSerializer(serializers.Serializer):
    payment_intent_id = serializers.RegexField(r"^pi_[A-Za-z0-9_]+$", max_length=255)
    service_id = serializers.UUIDField()


class ConfirmResponseSerializer(serializers.Serializer):
    order = OrderSerializer()
    is_idempotent_response = serializers.BooleanField()


class ReleaseEscrowSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class TransactionSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "order",
            "order_number",
            "buyer",
            "seller",
            "type",
            "amount_cents",
            "platform_fee_cents",
            "currency",
            "external_reference",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class TransactionListQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=TransactionType.choices, required=False)
    status = serializers.ChoiceField(choices=TransactionStatus.choices, required=False)


class TransactionTotalsSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    amount_cents = serializers.IntegerField()
    platform_fee_cents = serializers.IntegerField()
