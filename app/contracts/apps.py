from django.apps import AppConfig


class ContractsConfig(AppConfig):
    """Configuration for the contracts application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "contracts"
    verbose_name = "Contracts"
