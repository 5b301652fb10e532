"""
Pytest fixtures for Stripe adapter tests.

Sections:
    - Mock Stripe Objects
    - Mock Stripe Client
"""

from dataclasses import dataclass
from typing import Any
from unittest.mock import MagicMock

import pytest

from host_payments.adapters import StripeAdapter


# =============================================================================
# Mock Stripe Objects
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with to_dict support."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@pytest.fixture
def mock_account():
    """Create a mock Account response."""

    def _create(
        id: str = "acct_test123456",
        charges_enabled: bool = False,
        payouts_enabled: bool = False,
        details_submitted: bool = False,
        disabled_reason: str | None = None,
        currently_due: list[str] | None = None,
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "account",
                "type": "express",
                "email": "host@example.com",
                "country": "MX",
                "default_currency": "mxn",
                "charges_enabled": charges_enabled,
                "payouts_enabled": payouts_enabled,
                "details_submitted": details_submitted,
                "requirements": {
                    "currently_due": currently_due
                    if currently_due is not None
                    else ["external_account"],
                    "past_due": [],
                    "disabled_reason": disabled_reason,
                },
                "metadata": metadata or {"user_id": "42"},
            }
        )

    return _create


@pytest.fixture
def mock_account_link():
    """Create a mock AccountLink response."""
    return MockStripeObject(
        {
            "object": "account_link",
            "url": "https://connect.stripe.com/setup/e/acct_test123456/abc",
            "expires_at": 1700000300,
        }
    )


# =============================================================================
# Mock Stripe Client
# =============================================================================


@pytest.fixture
def stripe_client():
    """MagicMock standing in for stripe.StripeClient."""
    return MagicMock()


@pytest.fixture
def adapter(stripe_client):
    """StripeAdapter over the mock client."""
    return StripeAdapter(secret_key="sk_test_123", client=stripe_client)
