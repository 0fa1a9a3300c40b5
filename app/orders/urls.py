"""
URL configuration for the orders app.

All routes are prefixed with /api/v1/orders/ when included in the main URLconf.
"""

from django.urls import path

from orders.views import (
    OrderCancelView,
    OrderCompleteView,
    OrderDeliverView,
    OrderDetailView,
    OrderHistoryView,
    OrderListView,
    OrderUploadView,
)

app_name = "orders"

urlpatterns = [
    path("", OrderListView.as_view(), name="list"),
    path("<uuid:order_id>/", OrderDetailView.as_view(), name="detail"),
    path("<uuid:order_id>/history/", OrderHistoryView.as_view(), name="history"),
    path("<uuid:order_id>/upload/", OrderUploadView.as_view(), name="upload"),
    path("<uuid:order_id>/deliver/", OrderDeliverView.as_view(), name="deliver"),
    path("<uuid:order_id>/complete/", OrderCompleteView.as_view(), name="complete"),
    path("<uuid:order_id>/cancel/", OrderCancelView.as_view(), name="cancel"),
]
