"""
URL configuration for the contracts app.

All routes are prefixed with /api/v1/contracts/ when included in the main URLconf.
"""

from django.urls import path

from contracts.views import AgreeContractView, DownloadContractView, OrderContractView

app_name = "contracts"

urlpatterns = [
    path("orders/<uuid:order_id>/", OrderContractView.as_view(), name="for_order"),
    path("<uuid:contract_id>/agree/", AgreeContractView.as_view(), name="agree"),
    path("<uuid:contract_id>/download/", DownloadContractView.as_view(), name="download"),
]
