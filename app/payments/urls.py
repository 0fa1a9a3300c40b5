"""
URL configuration for the payments app.

All routes are prefixed with /api/v1/payments/ in config/urls.py.
"""

from django.urls import path

from payments.views import (
    ConfirmPaymentView,
    CreatePaymentIntentView,
    ReleaseEscrowView,
    TransactionListView,
)
from payments.webhooks.views import stripe_webhook

app_name = "payments"

urlpatterns = [
    path("create-intent/", CreatePaymentIntentView.as_view(), name="create_intent"),
    path("confirm/", ConfirmPaymentView.as_view(), name="confirm"),
    path("release-escrow/", ReleaseEscrowView.as_view(), name="release_escrow"),
    path("transactions/", TransactionListView.as_view(), name="transactions"),
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
]
