"""
URL configuration for the disputes app.

All routes are prefixed with /api/v1/disputes/ when included in the main URLconf.
"""

from django.urls import path

from disputes.views import (
    AdminDisputeListView,
    DisputeDetailView,
    DisputeListCreateView,
    DisputeRespondView,
    DisputeResolveView,
    DisputeStatsView,
)

app_name = "disputes"

urlpatterns = [
    path("", DisputeListCreateView.as_view(), name="list"),
    path("admin/", AdminDisputeListView.as_view(), name="admin_list"),
    path("stats/", DisputeStatsView.as_view(), name="stats"),
    path("<uuid:dispute_id>/", DisputeDetailView.as_view(), name="detail"),
    path("<uuid:dispute_id>/respond/", DisputeRespondView.as_view(), name="respond"),
    path("<uuid:dispute_id>/resolve/", DisputeResolveView.as_view(), name="resolve"),
]
