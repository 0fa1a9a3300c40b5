"""
Payment admin configuration.

Ledger rows and webhook events are read-only; failed webhooks can be
re-queued from the changelist.
"""

from django.contrib import admin

from payments.models import Transaction, WebhookEvent


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "order",
        "type",
        "amount_cents",
        "platform_fee_cents",
        "status",
        "external_reference",
        "created_at",
    ]
    list_filter = ["type", "status"]
    search_fields = ["id", "external_reference", "order__order_number"]
    readonly_fields = [field.name for field in Transaction._meta.fields]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "stripe_event_id",
        "event_type",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["stripe_event_id", "event_type"]
    readonly_fields = [field.name for field in WebhookEvent._meta.fields]
    ordering = ["-created_at"]
    actions = ["requeue_events"]

    @admin.action(description="Re-queue selected events for processing")
    def requeue_events(self, request, queryset):
        from payments.tasks import process_webhook_event

        count = 0
        for event in queryset.exclude(status="processed"):
            process_webhook_event.delay(str(event.id))
            count += 1
        self.message_user(request, f"Queued {count} webhook events")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
