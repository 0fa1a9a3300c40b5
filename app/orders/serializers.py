"""
Serializers for order reads and party actions.

Money is exposed in cents; clients format amounts themselves.
"""

from rest_framework import serializers

from orders.models import Order, OrderStatusHistory
from orders.states import OrderStatus

MAX_FILES = 20


class OrderSerializer(serializers.ModelSerializer):
    """Read-only order representation."""

    service_title = serializers.CharField(source="service.title", read_only=True)
    service_type = serializers.CharField(source="service.service_type", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer",
            "seller",
            "service",
            "service_title",
            "service_type",
            "amount_cents",
            "platform_fee_cents",
            "seller_amount_cents",
            "currency",
            "status",
            "escrow_status",
            "external_payment_reference",
            "buyer_files",
            "seller_files",
            "delivery_deadline",
            "completed_at",
            "cancelled_at",
            "refunded_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ["id", "from_status", "to_status", "actor", "source", "reason", "created_at"]
        read_only_fields = fields


class OrderListQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=["buyer", "seller", "all"], default="all")
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)


class UploadBuyerFilesSerializer(serializers.Serializer):
    """Buyer's source files for a collaboration."""

    file_urls = serializers.ListField(
        child=serializers.URLField(max_length=2048),
        min_length=1,
        max_length=MAX_FILES,
    )
    instructions = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")


class DeliverOrderSerializer(serializers.Serializer):
    """Seller's delivered files."""

    file_urls = serializers.ListField(
        child=serializers.URLField(max_length=2048),
        min_length=1,
        max_length=MAX_FILES,
    )
    delivery_notes = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
