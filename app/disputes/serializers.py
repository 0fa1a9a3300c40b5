"""
Serializers for the disputes API.
"""

from rest_framework import serializers

from disputes.models import Dispute
from disputes.states import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    MAX_EVIDENCE_URLS,
    DisputeReason,
    DisputeResolution,
    DisputeStatus,
)


class DisputeSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    order_status = serializers.CharField(source="order.status", read_only=True)

    class Meta:
        model = Dispute
        fields = [
            "id",
            "order",
            "order_number",
            "order_status",
            "raised_by",
            "reason",
            "description",
            "evidence_urls",
            "responses",
            "status",
            "resolution",
            "refund_amount_cents",
            "admin_notes",
            "resolved_at",
            "resolved_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AdminDisputeSerializer(DisputeSerializer):
    """Dispute with the order parties and amount, for the admin queue."""

    buyer = serializers.UUIDField(source="order.buyer_id", read_only=True)
    seller = serializers.UUIDField(source="order.seller_id", read_only=True)
    order_amount_cents = serializers.IntegerField(source="order.amount_cents", read_only=True)

    class Meta(DisputeSerializer.Meta):
        fields = [*DisputeSerializer.Meta.fields, "buyer", "seller", "order_amount_cents"]
        read_only_fields = fields


class CreateDisputeSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    reason = serializers.ChoiceField(choices=DisputeReason.choices)
    description = serializers.CharField(
        min_length=DESCRIPTION_MIN_LENGTH,
        max_length=DESCRIPTION_MAX_LENGTH,
    )
    evidence_urls = serializers.ListField(
        child=serializers.URLField(max_length=2048),
        max_length=MAX_EVIDENCE_URLS,
        required=False,
        default=list,
    )


class UpdateDisputeSerializer(serializers.Serializer):
    description = serializers.CharField(
        min_length=DESCRIPTION_MIN_LENGTH,
        max_length=DESCRIPTION_MAX_LENGTH,
        required=False,
    )
    evidence_urls = serializers.ListField(
        child=serializers.URLField(max_length=2048),
        max_length=MAX_EVIDENCE_URLS,
        required=False,
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide a description or evidence_urls.")
        return attrs


class RespondDisputeSerializer(serializers.Serializer):
    response = serializers.CharField(max_length=DESCRIPTION_MAX_LENGTH)


class ResolveDisputeSerializer(serializers.Serializer):
    resolution = serializers.ChoiceField(choices=DisputeResolution.choices)
    admin_notes = serializers.CharField(max_length=5000, required=False, allow_blank=True, default="")
    refund_amount_cents = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    def validate(self, attrs):
        if attrs["resolution"] == DisputeResolution.PARTIAL_REFUND and not attrs.get("refund_amount_cents"):
            raise serializers.ValidationError(
                {"refund_amount_cents": "Required for a partial refund."}
            )
        return attrs


class DisputeListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DisputeStatus.choices, required=False)


class DisputeStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    active = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
    by_reason = serializers.DictField(child=serializers.IntegerField())
