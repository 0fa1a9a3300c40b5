from django.contrib import admin

from contracts.models import Contract


@admin.register(Contract)
class ContractAdmin(admin.ModelAdmin):
    list_display = ("order", "buyer", "seller", "price_cents", "buyer_agreed_at", "seller_agreed_at")
    search_fields = ("order__order_number", "buyer__email", "seller__email")
    readonly_fields = [field.name for field in Contract._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
