"""
Stripe API adapter for Connect account operations.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls go through this adapter to
ensure consistent error handling, timeouts and observability.

Features:
- Explicit stripe.StripeClient per adapter (no global stripe.api_key)
- Bounded HTTP timeout and SDK network retries on every call
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Thread-safe; one instance is shared by web workers and Celery

Configuration (via ConnectSettings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: SDK network retries (default: 2)
- STRIPE_CONNECT_ACCOUNT_TYPE: Connect account type (default: express)

Usage:
    from host_payments.adapters import StripeAdapter

    adapter = StripeAdapter.from_settings(ConnectSettings.from_settings())

    account = adapter.create_account(country="MX", metadata={"user_id": "42"})
    url = adapter.create_onboarding_link(account.id, return_url, refresh_url)
    account = adapter.retrieve_account("acct_123")
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable, TypeVar

import stripe

from host_payments.exceptions import (
    ProviderClientError,
    ProviderConfigError,
    ProviderRateLimitError,
    ProviderUnavailableError,
)
from host_payments.types import ProviderAccount
from host_payments.webhooks.verification import WebhookVerifier

if TYPE_CHECKING:
    from host_payments.config import ConnectSettings
    from host_payments.types import WebhookEvent

T = TypeVar("T")

ONBOARDING_LINK_TYPE = "account_onboarding"
REQUESTED_CAPABILITIES = ("card_payments", "transfers")


class StripeAdapter:
    """
    Adapter for Stripe Connect operations.

    Implements host_payments.protocols.ProviderClient.

    Usage:
        adapter = StripeAdapter(secret_key="sk_test_...", timeout_seconds=10)
        account = adapter.retrieve_account("acct_123")
    """

    def __init__(
        self,
        secret_key: str,
        timeout_seconds: int = 10,
        max_network_retries: int = 2,
        account_type: str = "express",
        verifier: WebhookVerifier | None = None,
        client: stripe.StripeClient | None = None,
    ):
        if client is None:
            if not secret_key:
                raise ProviderConfigError("STRIPE_SECRET_KEY is not set")
            client = stripe.StripeClient(
                secret_key,
                http_client=stripe.RequestsClient(timeout=timeout_seconds),
                max_network_retries=max_network_retries,
            )
        self._client = client
        self.account_type = account_type
        self.verifier = verifier or WebhookVerifier()

    @classmethod
    def from_settings(cls, connect_settings: ConnectSettings) -> StripeAdapter:
        """Build an adapter from validated Connect settings."""
        return cls(
            secret_key=connect_settings.secret_key,
            timeout_seconds=connect_settings.api_timeout_seconds,
            max_network_retries=connect_settings.max_network_retries,
            account_type=connect_settings.account_type,
            verifier=WebhookVerifier(connect_settings.webhook_tolerance_seconds),
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    def create_account(
        self,
        country: str,
        metadata: dict[str, str],
        email: str | None = None,
    ) -> ProviderAccount:
        """
        Create a Connect account with card payments and transfers requested.

        Args:
            country: Two-letter country code
            metadata: Key-value pairs to attach (carries our user id)
            email: Optional email to prefill in onboarding

        Returns:
            ProviderAccount for the new account

        Raises:
            ProviderClientError: Stripe rejected the parameters
            ProviderTransientError: Rate limited, timed out or unavailable
            ProviderConfigError: Stripe rejected our API key
        """
        params: dict[str, Any] = {
            "type": self.account_type,
            "country": country,
            "capabilities": {
                capability: {"requested": True} for capability in REQUESTED_CAPABILITIES
            },
            "metadata": metadata,
        }
        if email:
            params["email"] = email

        account = self._execute(
            "create_account",
            {"country": country, "account_type": self.account_type},
            lambda: self._client.v1.accounts.create(params=params),
        )
        return ProviderAccount.from_stripe(account)

    def create_onboarding_link(
        self,
        account_id: str,
        return_url: str,
        refresh_url: str,
    ) -> str:
        """
        Create a hosted onboarding link for an account.

        Returns:
            The single-use onboarding URL
        """
        link = self._execute(
            "create_onboarding_link",
            {"stripe_account_id": account_id},
            lambda: self._client.v1.account_links.create(
                params={
                    "account": account_id,
                    "refresh_url": refresh_url,
                    "return_url": return_url,
                    "type": ONBOARDING_LINK_TYPE,
                }
            ),
        )
        return link.url

    def retrieve_account(self, account_id: str) -> ProviderAccount:
        """Fetch the current state of a connected account."""
        account = self._execute(
            "retrieve_account",
            {"stripe_account_id": account_id},
            lambda: self._client.v1.accounts.retrieve(account_id),
        )
        return ProviderAccount.from_stripe(account)

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    def verify_and_parse_event(
        self,
        payload: bytes,
        signature_header: str,
        secret: str,
    ) -> WebhookEvent:
        """
        Verify and parse a Stripe webhook delivery.

        Raises:
            WebhookVerificationError: The delivery must be rejected
        """
        return self.verifier.verify(payload, signature_header, secret)

    # =========================================================================
    # Error Handling
    # =========================================================================

    def _execute(
        self,
        operation: str,
        log_context: dict[str, Any],
        call: Callable[[], T],
    ) -> T:
        """Run one Stripe call with timing logs and error translation."""
        logger = self.get_logger()
        log_context = {"operation": operation, **log_context}

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            result = call()
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise  # Never reached, but satisfies type checker

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={**log_context, "duration_ms": duration_ms},
        )
        return result

    def _handle_stripe_error(
        self,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        Raises:
            ProviderClientError: Invalid request, card or permission error
            ProviderConfigError: Authentication failed (bad API key)
            ProviderRateLimitError: Rate limited
            ProviderUnavailableError: Connection error, timeout, API error,
                or anything unexpected
        """
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(
            error, (stripe.InvalidRequestError, stripe.CardError, stripe.PermissionError)
        ):
            # Caller-fixable; retrying the same request fails the same way
            logger.error(
                "Stripe rejected the request",
                extra={**log_context, "stripe_code": error.code},
            )
            raise ProviderClientError(
                str(error.user_message or error),
                stripe_code=error.code,
            ) from error

        if isinstance(error, stripe.AuthenticationError):
            # Invalid API key - permanent, operational issue
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise ProviderConfigError(
                "Stripe authentication failed",
                details={"stripe_code": "authentication_error"},
            ) from error

        if isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise ProviderRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            ) from error

        if isinstance(error, stripe.APIConnectionError):
            # Includes timeouts from the HTTP client
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise ProviderUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            ) from error

        if isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise ProviderUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            ) from error

        logger.error(
            f"Unexpected error from Stripe: {type(error).__name__}",
            extra=log_context,
            exc_info=True,
        )
        raise ProviderUnavailableError(
            f"Unexpected Stripe error: {error}",
            stripe_code="unknown_error",
        ) from error
