"""
Pytest fixtures shared by all host payment tests.

Sections:
    - Service Wiring
    - Users
    - Webhook Signing
"""

import pytest

from host_payments.config import ConnectSettings
from host_payments.services import build_account_services, reset_account_services
from host_payments.services.lifecycle import AccountLifecycleManager
from host_payments.stores import DjangoAccountStore, InMemoryAccountStore
from host_payments.tests.factories import UserFactory
from host_payments.tests.fakes import FakeProvider
from host_payments.webhooks.verification import WebhookVerifier

WEBHOOK_SECRET = "whsec_test_secret"


# =============================================================================
# Service Wiring
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_account_services():
    """Never let cached services leak between tests."""
    reset_account_services()
    yield
    reset_account_services()


@pytest.fixture
def connect_settings():
    """Valid Connect settings with test credentials."""
    return ConnectSettings(
        secret_key="sk_test_123",
        webhook_secret=WEBHOOK_SECRET,
        return_url="https://app.example.com/stripe/return",
        refresh_url="https://app.example.com/stripe/refresh",
    )


@pytest.fixture
def fake_provider(connect_settings):
    """In-memory Stripe double."""
    return FakeProvider(WebhookVerifier(connect_settings.webhook_tolerance_seconds))


@pytest.fixture
def memory_store():
    """Empty in-memory account store."""
    return InMemoryAccountStore()


@pytest.fixture
def lifecycle(fake_provider, memory_store, connect_settings):
    """Lifecycle manager over the fake provider and in-memory store."""
    return AccountLifecycleManager(fake_provider, memory_store, connect_settings)


@pytest.fixture
def db_services(db, fake_provider, connect_settings):
    """Services wired to the fake provider and the real database store."""
    return build_account_services(
        connect_settings=connect_settings,
        provider=fake_provider,
        store=DjangoAccountStore(),
    )


# =============================================================================
# Users
# =============================================================================


@pytest.fixture
def user(db):
    """A host user."""
    return UserFactory()


@pytest.fixture
def staff_user(db):
    """A staff user."""
    return UserFactory(is_staff=True)


# =============================================================================
# Webhook Signing
# =============================================================================


@pytest.fixture
def webhook_secret():
    return WEBHOOK_SECRET
