"""
Root URL configuration.

URL Structure:
    /                              - ReDoc API documentation
    /schema/                       - OpenAPI schema
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /api/v1/payments/              - Intents, confirmation, escrow release, Stripe webhook
    /api/v1/orders/                - Order reads and buyer/seller workflow
    /api/v1/disputes/              - Dispute creation, responses and resolution
    /api/v1/contracts/             - Collaboration contracts
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# All routes here are prefixed with /api/v1/
api_v1_patterns = [
    path("payments/", include("payments.urls")),
    path("orders/", include("orders.urls")),
    path("disputes/", include("disputes.urls")),
    path("contracts/", include("contracts.urls")),
]

urlpatterns = [
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Marketplace Admin"
admin.site.site_title = "Marketplace Admin"
admin.site.index_title = "Orders, payments and disputes"
