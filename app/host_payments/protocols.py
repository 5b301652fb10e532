"""
Protocol definitions for the host payment collaborators.

The lifecycle manager depends on these interfaces rather than on Stripe or
the ORM directly, so tests can pass in-memory implementations and the
composition root decides what is wired in production.

Available Protocols:
    ProviderClient: Stripe Connect operations (implemented by StripeAdapter)
    AccountStore: Account record persistence (DjangoAccountStore,
        InMemoryAccountStore)

Usage:
    from host_payments.protocols import AccountStore, ProviderClient

    def build(provider: ProviderClient, store: AccountStore) -> AccountLifecycleManager:
        return AccountLifecycleManager(provider, store, ConnectSettings.from_settings())
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from host_payments.state_machines import AccountStatus
    from host_payments.types import AccountRecord, ProviderAccount, WebhookEvent


@runtime_checkable
class ProviderClient(Protocol):
    """
    Protocol for the payment provider's account API.

    Implementations translate SDK failures into host_payments.exceptions:
    ProviderClientError, ProviderTransientError subclasses, or
    ProviderConfigError.
    """

    def create_account(
        self,
        country: str,
        metadata: dict[str, str],
        email: str | None = None,
    ) -> ProviderAccount:
        """Create a connected account and return Stripe's view of it."""
        ...

    def create_onboarding_link(
        self,
        account_id: str,
        return_url: str,
        refresh_url: str,
    ) -> str:
        """Create a hosted onboarding link and return its URL."""
        ...

    def retrieve_account(self, account_id: str) -> ProviderAccount:
        """Fetch the current state of a connected account."""
        ...

    def verify_and_parse_event(
        self,
        payload: bytes,
        signature_header: str,
        secret: str,
    ) -> WebhookEvent:
        """
        Verify a webhook signature and parse the body.

        Raises:
            WebhookVerificationError: The delivery must be rejected
        """
        ...


@runtime_checkable
class AccountStore(Protocol):
    """
    Protocol for account record persistence.

    Records are keyed by user id with a unique secondary key on the
    provider account id. Writes replace the whole record. Read-modify-write
    through update_by_provider_account_id is atomic per provider account.
    """

    def get_by_user(self, user_id: int) -> AccountRecord | None:
        """Return the user's record, or None."""
        ...

    def get_by_provider_account_id(self, provider_account_id: str) -> AccountRecord | None:
        """Return the record linked to a Stripe account id, or None."""
        ...

    def upsert(self, record: AccountRecord) -> AccountRecord:
        """
        Insert or fully replace the user's record.

        Raises:
            AccountConflictError: The provider account id belongs to
                another user
        """
        ...

    def update_by_provider_account_id(
        self,
        provider_account_id: str,
        mutate: Callable[[AccountRecord], AccountRecord | None],
    ) -> AccountRecord | None:
        """
        Atomically read, mutate and write one record.

        mutate receives the stored record and returns the full replacement,
        or None to leave the row untouched.

        Returns:
            The record as stored afterwards, or None if no record has this
            provider account id (mutate is not called)
        """
        ...

    def mark_synced(self, user_id: int, synced_at: datetime) -> None:
        """
        Record when the user's account was last pulled from the provider.

        Touches only last_synced_at: version and updated_at stay as they
        are. Does nothing when the user has no record.
        """
        ...

    def list_user_ids_by_status(
        self,
        statuses: Iterable[AccountStatus],
        limit: int,
    ) -> list[int]:
        """
        Return up to `limit` user ids whose status is in `statuses`.

        Records never synced come first, then the least recently synced.
        """
        ...
