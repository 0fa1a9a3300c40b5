from rest_framework import serializers

from contracts.models import Contract


class ContractSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    is_locked = serializers.BooleanField(read_only=True)

    class Meta:
        model = Contract
        fields = [
            "id",
            "order",
            "order_number",
            "buyer",
            "seller",
            "price_cents",
            "terms",
            "buyer_agreed_at",
            "seller_agreed_at",
            "is_locked",
            "document_path",
            "created_at",
        ]
        read_only_fields = fields
