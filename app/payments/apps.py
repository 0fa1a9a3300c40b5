"""
Payments app configuration.

Escrow payments through Stripe, the transaction ledger and webhook
processing.
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
