"""
Tests for the Stripe adapter.

Tests cover:
- Client construction and settings
- Request parameters for each Connect operation
- Error translation for each Stripe exception type
- Webhook verification delegation
"""

from unittest.mock import MagicMock, patch

import pytest
import stripe

from host_payments.adapters import StripeAdapter
from host_payments.config import ConnectSettings
from host_payments.protocols import ProviderClient
from host_payments.exceptions import (
    ProviderClientError,
    ProviderConfigError,
    ProviderRateLimitError,
    ProviderTransientError,
    ProviderUnavailableError,
)


# =============================================================================
# Construction
# =============================================================================


class TestStripeAdapterInit:
    """Tests for building the adapter."""

    def test_requires_secret_key(self):
        """Should refuse to build a client without a key."""
        with pytest.raises(ProviderConfigError):
            StripeAdapter(secret_key="")

    @patch("host_payments.adapters.stripe_adapter.stripe.StripeClient")
    @patch("host_payments.adapters.stripe_adapter.stripe.RequestsClient")
    def test_builds_client_with_timeout_and_retries(self, requests_client, stripe_client):
        """The HTTP timeout and SDK retries come from the arguments."""
        StripeAdapter(secret_key="sk_test_123", timeout_seconds=7, max_network_retries=3)

        requests_client.assert_called_once_with(timeout=7)
        stripe_client.assert_called_once_with(
            "sk_test_123",
            http_client=requests_client.return_value,
            max_network_retries=3,
        )

    @patch("host_payments.adapters.stripe_adapter.stripe.StripeClient")
    @patch("host_payments.adapters.stripe_adapter.stripe.RequestsClient")
    def test_from_settings(self, requests_client, stripe_client):
        connect_settings = ConnectSettings(
            secret_key="sk_test_abc",
            webhook_secret="whsec_abc",
            api_timeout_seconds=4,
            max_network_retries=1,
            webhook_tolerance_seconds=120,
            account_type="custom",
        )

        adapter = StripeAdapter.from_settings(connect_settings)

        requests_client.assert_called_once_with(timeout=4)
        assert stripe_client.call_args.kwargs["max_network_retries"] == 1
        assert adapter.account_type == "custom"
        assert adapter.verifier.tolerance_seconds == 120


# =============================================================================
# Operations
# =============================================================================


class TestCreateAccount:
    """Tests for StripeAdapter.create_account."""

    def test_request_parameters(self, adapter, stripe_client, mock_account):
        """Should request card payments and transfers on an express account."""
        stripe_client.v1.accounts.create.return_value = mock_account()

        adapter.create_account(country="MX", metadata={"user_id": "42"})

        params = stripe_client.v1.accounts.create.call_args.kwargs["params"]
        assert params == {
            "type": "express",
            "country": "MX",
            "capabilities": {
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
            "metadata": {"user_id": "42"},
        }

    def test_email_is_prefilled(self, adapter, stripe_client, mock_account):
        stripe_client.v1.accounts.create.return_value = mock_account()

        adapter.create_account(
            country="MX", metadata={"user_id": "42"}, email="host@example.com"
        )

        params = stripe_client.v1.accounts.create.call_args.kwargs["params"]
        assert params["email"] == "host@example.com"

    def test_returns_provider_account(self, adapter, stripe_client, mock_account):
        stripe_client.v1.accounts.create.return_value = mock_account(id="acct_new")

        account = adapter.create_account(country="MX", metadata={"user_id": "42"})

        assert account.id == "acct_new"
        assert account.charges_enabled is False
        assert account.requirements_currently_due == ("external_account",)
        assert account.metadata == {"user_id": "42"}


class TestCreateOnboardingLink:
    """Tests for StripeAdapter.create_onboarding_link."""

    def test_returns_url(self, adapter, stripe_client, mock_account_link):
        stripe_client.v1.account_links.create.return_value = mock_account_link

        url = adapter.create_onboarding_link(
            "acct_test123456",
            return_url="https://app.example.com/return",
            refresh_url="https://app.example.com/refresh",
        )

        assert url == mock_account_link.url
        stripe_client.v1.account_links.create.assert_called_once_with(
            params={
                "account": "acct_test123456",
                "refresh_url": "https://app.example.com/refresh",
                "return_url": "https://app.example.com/return",
                "type": "account_onboarding",
            }
        )


class TestRetrieveAccount:
    """Tests for StripeAdapter.retrieve_account."""

    def test_reads_flags(self, adapter, stripe_client, mock_account):
        stripe_client.v1.accounts.retrieve.return_value = mock_account(
            charges_enabled=True,
            payouts_enabled=True,
            details_submitted=True,
            currently_due=[],
        )

        account = adapter.retrieve_account("acct_test123456")

        stripe_client.v1.accounts.retrieve.assert_called_once_with("acct_test123456")
        assert account.charges_enabled is True
        assert account.payouts_enabled is True
        assert account.requirements_currently_due == ()

    def test_reads_disabled_reason(self, adapter, stripe_client, mock_account):
        stripe_client.v1.accounts.retrieve.return_value = mock_account(
            disabled_reason="requirements.past_due"
        )

        account = adapter.retrieve_account("acct_test123456")

        assert account.disabled_reason == "requirements.past_due"


# =============================================================================
# Error Translation
# =============================================================================


class TestErrorTranslation:
    """Stripe exceptions become domain exceptions with the right category."""

    @pytest.mark.parametrize(
        "stripe_error,expected,stripe_code",
        [
            (
                stripe.InvalidRequestError(
                    "No such account: 'acct_missing'", "id", code="resource_missing"
                ),
                ProviderClientError,
                "resource_missing",
            ),
            (
                stripe.PermissionError("Not allowed", code="account_invalid"),
                ProviderClientError,
                "account_invalid",
            ),
            (
                stripe.RateLimitError("Too many requests"),
                ProviderRateLimitError,
                "rate_limit",
            ),
            (
                stripe.APIConnectionError("Request timed out"),
                ProviderUnavailableError,
                "api_connection_error",
            ),
            (
                stripe.APIError("Internal error"),
                ProviderUnavailableError,
                "api_error",
            ),
            (
                RuntimeError("socket exploded"),
                ProviderUnavailableError,
                "unknown_error",
            ),
        ],
    )
    def test_translation(self, adapter, stripe_client, stripe_error, expected, stripe_code):
        stripe_client.v1.accounts.retrieve.side_effect = stripe_error

        with pytest.raises(expected) as exc_info:
            adapter.retrieve_account("acct_test123456")

        assert exc_info.value.details["stripe_code"] == stripe_code
        assert exc_info.value.__cause__ is stripe_error

    def test_authentication_error_is_config(self, adapter, stripe_client):
        """A bad API key is an operator problem, not a retryable one."""
        stripe_client.v1.accounts.create.side_effect = stripe.AuthenticationError(
            "Invalid API Key provided"
        )

        with pytest.raises(ProviderConfigError):
            adapter.create_account(country="MX", metadata={})

    def test_transient_errors_are_retryable(self, adapter, stripe_client):
        stripe_client.v1.account_links.create.side_effect = stripe.APIConnectionError(
            "Connection reset"
        )

        with pytest.raises(ProviderTransientError) as exc_info:
            adapter.create_onboarding_link("acct_1", "https://a.test/r", "https://a.test/f")

        assert exc_info.value.is_retryable is True

    def test_client_errors_are_not_retryable(self, adapter, stripe_client):
        stripe_client.v1.accounts.create.side_effect = stripe.InvalidRequestError(
            "Country 'ZZ' is unknown", "country", code="parameter_invalid_string"
        )

        with pytest.raises(ProviderClientError) as exc_info:
            adapter.create_account(country="ZZ", metadata={})

        assert exc_info.value.is_retryable is False
        assert "ZZ" in exc_info.value.message


# =============================================================================
# Webhook Verification
# =============================================================================


class TestVerifyAndParseEvent:
    """Tests for webhook verification delegation."""

    def test_delegates_to_verifier(self, stripe_client):
        verifier = MagicMock()
        adapter = StripeAdapter(secret_key="sk_test", client=stripe_client, verifier=verifier)

        result = adapter.verify_and_parse_event(b"{}", "t=1,v1=abc", "whsec_x")

        verifier.verify.assert_called_once_with(b"{}", "t=1,v1=abc", "whsec_x")
        assert result is verifier.verify.return_value
        stripe_client.assert_not_called()

    def test_implements_provider_client(self, adapter):
        assert isinstance(adapter, ProviderClient)
