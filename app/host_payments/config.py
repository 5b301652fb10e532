"""
Validated Stripe Connect configuration.

Settings are read from django.conf.settings (populated from the
environment by django-environ) once, when the account services are first
built, and handed to the components as an immutable ConnectSettings.

Usage:
    from host_payments.config import ConnectSettings

    connect_settings = ConnectSettings.from_settings()
    connect_settings.webhook_secret
"""

from __future__ import annotations

from dataclasses import dataclass, field

from django.conf import settings

from host_payments.exceptions import ProviderConfigError


@dataclass(frozen=True)
class ConnectSettings:
    """
    Stripe Connect configuration.

    Attributes:
        secret_key: Stripe API secret key (sk_...)
        webhook_secret: Webhook endpoint signing secret (whsec_...)
        api_timeout_seconds: HTTP timeout for every Stripe call
        max_network_retries: Retries performed by the Stripe SDK
        webhook_tolerance_seconds: Accepted age of a webhook signature
        account_type: Connect account type (express)
        default_country: Country for new accounts
        default_currency: Currency recorded when Stripe reports none
        return_url: Where Stripe sends the host after onboarding
        refresh_url: Where Stripe sends the host when the link expires
        sync_batch_size: Accounts reconciled per background sync run
    """

    secret_key: str = field(repr=False)
    webhook_secret: str = field(repr=False)
    api_timeout_seconds: int = 10
    max_network_retries: int = 2
    webhook_tolerance_seconds: int = 300
    account_type: str = "express"
    default_country: str = "MX"
    default_currency: str = "mxn"
    return_url: str = "poolandchill://stripe/return"
    refresh_url: str = "poolandchill://stripe/refresh"
    sync_batch_size: int = 100

    def __post_init__(self) -> None:
        missing = [
            name
            for name, value in (
                ("STRIPE_SECRET_KEY", self.secret_key),
                ("STRIPE_WEBHOOK_SECRET", self.webhook_secret),
                ("STRIPE_CONNECT_RETURN_URL", self.return_url),
                ("STRIPE_CONNECT_REFRESH_URL", self.refresh_url),
            )
            if not value
        ]
        if missing:
            raise ProviderConfigError(
                f"Stripe Connect is not configured: {', '.join(missing)} missing",
                details={"missing": missing},
            )

        for name, value in (
            ("STRIPE_API_TIMEOUT_SECONDS", self.api_timeout_seconds),
            ("STRIPE_WEBHOOK_TOLERANCE_SECONDS", self.webhook_tolerance_seconds),
            ("CONNECT_SYNC_BATCH_SIZE", self.sync_batch_size),
        ):
            if value <= 0:
                raise ProviderConfigError(
                    f"{name} must be positive",
                    details={name: value},
                )
        if self.max_network_retries < 0:
            raise ProviderConfigError(
                "STRIPE_MAX_RETRIES cannot be negative",
                details={"STRIPE_MAX_RETRIES": self.max_network_retries},
            )

    @classmethod
    def from_settings(cls) -> ConnectSettings:
        """
        Build from Django settings.

        Raises:
            ProviderConfigError: A required value is missing or invalid
        """
        return cls(
            secret_key=getattr(settings, "STRIPE_SECRET_KEY", ""),
            webhook_secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", ""),
            api_timeout_seconds=getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10),
            max_network_retries=getattr(settings, "STRIPE_MAX_RETRIES", 2),
            webhook_tolerance_seconds=getattr(
                settings, "STRIPE_WEBHOOK_TOLERANCE_SECONDS", 300
            ),
            account_type=getattr(settings, "STRIPE_CONNECT_ACCOUNT_TYPE", "express"),
            default_country=getattr(settings, "STRIPE_CONNECT_DEFAULT_COUNTRY", "MX"),
            default_currency=getattr(settings, "STRIPE_CONNECT_DEFAULT_CURRENCY", "mxn"),
            return_url=getattr(
                settings, "STRIPE_CONNECT_RETURN_URL", "poolandchill://stripe/return"
            ),
            refresh_url=getattr(
                settings, "STRIPE_CONNECT_REFRESH_URL", "poolandchill://stripe/refresh"
            ),
            sync_batch_size=getattr(settings, "CONNECT_SYNC_BATCH_SIZE", 100),
        )
