from django.contrib import admin

from catalog.models import Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    """Listings with their commercial terms."""

    list_display = ("title", "service_type", "price_cents", "seller", "is_active", "total_sales")
    list_filter = ("service_type", "is_active")
    search_fields = ("title", "seller__email")
    readonly_fields = ("total_sales", "created_at", "updated_at")
    raw_id_fields = ("seller",)
