"""
Admin for disputes.

Resolution moves money, so it is done through the resolve endpoint; the
admin shows disputes and lets staff keep notes.
"""

from django.contrib import admin

from disputes.models import Dispute


@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "reason", "status", "resolution", "raised_by", "created_at")
    list_filter = ("status", "reason", "resolution")
    search_fields = ("order__order_number", "raised_by__email", "description")
    readonly_fields = (
        "order",
        "raised_by",
        "reason",
        "description",
        "evidence_urls",
        "responses",
        "status",
        "resolution",
        "refund_amount_cents",
        "resolved_at",
        "resolved_by",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
