"""
Host payments app configuration.
"""

from django.apps import AppConfig


class HostPaymentsConfig(AppConfig):
    """Configuration for the host payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "host_payments"
    verbose_name = "Host Payments"

    def ready(self) -> None:
        # Registers the webhook handlers with the dispatch registry
        from host_payments.webhooks import handlers  # noqa: F401
