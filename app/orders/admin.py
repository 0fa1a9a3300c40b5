"""
Read-only admin for orders.

Status changes go through the API so history and ledger rows stay
consistent; the admin only displays them.
"""

from django.contrib import admin

from orders.models import Order, OrderStatusHistory


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    can_delete = False
    fields = ("created_at", "from_status", "to_status", "source", "actor", "reason")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "status",
        "escrow_status",
        "amount_cents",
        "buyer",
        "seller",
        "created_at",
    )
    list_filter = ("status", "escrow_status")
    search_fields = ("order_number", "external_payment_reference", "buyer__email", "seller__email")
    readonly_fields = [field.name for field in Order._meta.fields]
    inlines = [OrderStatusHistoryInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
