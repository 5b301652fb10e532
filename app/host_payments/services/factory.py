"""
Composition root for the host payment services.

Builds the Stripe adapter, store, lifecycle manager and status service once
per process from validated settings, and hands the same instances to every
view and task. Nothing else constructs these components in production.

Usage:
    from host_payments.services import get_account_services

    services = get_account_services()
    services.lifecycle.create_account(user.id)

    # Tests
    reset_account_services()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from host_payments.adapters import StripeAdapter
from host_payments.config import ConnectSettings
from host_payments.services.lifecycle import AccountLifecycleManager
from host_payments.services.status import AccountStatusService
from host_payments.stores import DjangoAccountStore

if TYPE_CHECKING:
    from host_payments.protocols import AccountStore, ProviderClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountServices:
    """The wired-up host payment components."""

    config: ConnectSettings
    provider: ProviderClient
    store: AccountStore
    lifecycle: AccountLifecycleManager
    status: AccountStatusService


def build_account_services(
    connect_settings: ConnectSettings | None = None,
    provider: ProviderClient | None = None,
    store: AccountStore | None = None,
) -> AccountServices:
    """
    Wire the components together.

    Any collaborator not passed in is built from Django settings.

    Raises:
        ProviderConfigError: Stripe settings are missing or invalid
    """
    connect_settings = connect_settings or ConnectSettings.from_settings()
    provider = provider or StripeAdapter.from_settings(connect_settings)
    store = store or DjangoAccountStore()

    lifecycle = AccountLifecycleManager(provider, store, connect_settings)
    return AccountServices(
        config=connect_settings,
        provider=provider,
        store=store,
        lifecycle=lifecycle,
        status=AccountStatusService(lifecycle),
    )


_services: AccountServices | None = None
_services_lock = threading.Lock()


def get_account_services() -> AccountServices:
    """
    Return the process-wide AccountServices, building them on first use.

    Raises:
        ProviderConfigError: Stripe settings are missing or invalid (raised
            again on every call until the environment is fixed)
    """
    global _services
    if _services is None:
        with _services_lock:
            if _services is None:
                _services = build_account_services()
                logger.info("Host payment services initialised")
    return _services


def reset_account_services() -> None:
    """Drop the cached services so the next call rebuilds them."""
    global _services
    with _services_lock:
        _services = None
