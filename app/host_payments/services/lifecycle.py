"""
Connected account lifecycle management.

AccountLifecycleManager is the only writer of account records. Updates
reach it over three channels, none of them ordered or reliable:

- The host: create_account() on signup, reconcile() when the app asks for
  status and we pull the current state from Stripe
- The sweep: refresh() for accounts still pending or restricted
- Stripe: account.updated webhooks, already verified by the webhook view

All of them end in the same snapshot merge, which folds a complete
Stripe snapshot into the stored record as one idempotent full-record
upsert. Applying the same snapshot twice is a no-op; applying snapshots in
any order leaves the last one applied in effect.

Status Flow (always recomputed, see derive_account_status):
    none → pending       create_account()
    pending → active     charges and payouts enabled
    pending → restricted Stripe disabled the account
    active ⇄ restricted  Stripe disabled / re-enabled the account

Usage:
    manager = AccountLifecycleManager(provider, store, connect_settings)

    link = manager.create_account(user.id)
    record = manager.apply_provider_snapshot(event.account)
    record = manager.reconcile(user.id, refresh_from_provider=True)
    record, changed = manager.refresh(user.id)
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from django.utils import timezone

from core.services import BaseService

from host_payments.exceptions import ProviderError
from host_payments.state_machines import AccountStatus, derive_account_status
from host_payments.types import AccountRecord, OnboardingLink

if TYPE_CHECKING:
    from host_payments.config import ConnectSettings
    from host_payments.protocols import AccountStore, ProviderClient
    from host_payments.types import ProviderAccount


class AccountLifecycleManager(BaseService):
    """
    Creates connected accounts and keeps their records in sync with Stripe.

    Holds no per-request state; one instance serves every request and task.
    """

    def __init__(
        self,
        provider: ProviderClient,
        store: AccountStore,
        connect_settings: ConnectSettings,
    ):
        self.provider = provider
        self.store = store
        self.connect_settings = connect_settings

    # =========================================================================
    # Creation
    # =========================================================================

    def create_account(self, user_id: int, email: str | None = None) -> OnboardingLink:
        """
        Create a Stripe account for a host and start onboarding.

        Not idempotent: every call creates a new Stripe account and replaces
        the user's record with a fresh pending one.

        Args:
            user_id: Host's user id (stored in the Stripe account metadata)
            email: Optional email to prefill in onboarding

        Returns:
            OnboardingLink with the new account id and onboarding URL

        Raises:
            ProviderClientError: Stripe rejected the request
            ProviderTransientError: Stripe was unreachable or rate limited
            ProviderConfigError: Stripe rejected our credentials
            AccountConflictError: Stripe returned an id another user owns
        """
        logger = self.get_logger()
        cs = self.connect_settings

        account = self.provider.create_account(
            country=cs.default_country,
            metadata={"user_id": str(user_id)},
            email=email,
        )
        onboarding_url = self.provider.create_onboarding_link(
            account.id,
            return_url=cs.return_url,
            refresh_url=cs.refresh_url,
        )

        record = self.store.upsert(
            AccountRecord(
                user_id=user_id,
                provider_account_id=account.id,
                email=account.email or email,
                country=account.country or cs.default_country,
                default_currency=account.default_currency or cs.default_currency,
                account_status=AccountStatus.PENDING,
                charges_enabled=False,
                payouts_enabled=False,
                details_submitted=False,
                onboarding_url=onboarding_url,
                requirements_currently_due=account.requirements_currently_due,
                requirements_past_due=account.requirements_past_due,
            )
        )

        logger.info(
            "Created connected account",
            extra={
                "user_id": user_id,
                "stripe_account_id": record.provider_account_id,
                "country": record.country,
            },
        )
        return OnboardingLink(
            provider_account_id=record.provider_account_id,
            onboarding_url=onboarding_url,
        )

    # =========================================================================
    # Synchronization
    # =========================================================================

    def apply_provider_snapshot(self, snapshot: ProviderAccount) -> AccountRecord | None:
        """
        Fold a complete Stripe account snapshot into the stored record.

        Runs inside the store's per-account locked read-modify-write. The
        record is written only when something changed, so re-applying a
        snapshot leaves updated_at and version untouched.

        Args:
            snapshot: Stripe's current view of the account

        Returns:
            The record as stored afterwards, or None when no user owns this
            Stripe account (logged, not an error)
        """
        record, _ = self._apply_snapshot(snapshot)
        return record

    def refresh(self, user_id: int) -> tuple[AccountRecord | None, bool]:
        """
        Pull the user's account from Stripe and apply it.

        A successful pull stamps last_synced_at even when nothing else
        changed, which moves the account to the back of the sweep.

        Args:
            user_id: Host's user id

        Returns:
            (record, changed): the stored record afterwards and whether the
            pull changed it. (None, False) when the user has no account.

        Raises:
            ProviderError: Stripe could not be reached or refused the
                request; nothing is written
            ProviderConfigError: Stripe rejected our credentials
        """
        record = self.store.get_by_user(user_id)
        if record is None:
            return None, False
        return self._refresh(record)

    def reconcile(
        self,
        user_id: int,
        refresh_from_provider: bool = True,
    ) -> AccountRecord | None:
        """
        Return the user's record, optionally refreshed from Stripe first.

        A failed refresh (timeout, outage, rejected request) is logged and
        the last stored record is returned instead.

        Args:
            user_id: Host's user id
            refresh_from_provider: Pull the current state from Stripe first

        Returns:
            The stored record, or None when the user has no account (Stripe
            is not contacted)

        Raises:
            ProviderConfigError: Stripe rejected our credentials
        """
        record = self.store.get_by_user(user_id)
        if record is None or not refresh_from_provider:
            return record

        try:
            refreshed, _ = self._refresh(record)
        except ProviderError as e:
            self.get_logger().warning(
                "Stripe refresh failed, returning stored account",
                extra={
                    "user_id": user_id,
                    "stripe_account_id": record.provider_account_id,
                    "error_code": e.error_code,
                },
            )
            return record

        return refreshed

    # =========================================================================
    # Helpers
    # =========================================================================

    def _refresh(self, record: AccountRecord) -> tuple[AccountRecord | None, bool]:
        snapshot = self.provider.retrieve_account(record.provider_account_id)
        _, changed = self._apply_snapshot(snapshot)
        self.store.mark_synced(record.user_id, timezone.now())
        return self.store.get_by_user(record.user_id), changed

    def _apply_snapshot(
        self, snapshot: ProviderAccount
    ) -> tuple[AccountRecord | None, bool]:
        """Apply a snapshot, returning the stored record and whether it changed."""
        logger = self.get_logger()
        changes: dict[str, object] = {}

        def mutate(current: AccountRecord) -> AccountRecord | None:
            updated = self._merge_snapshot(current, snapshot)
            if updated == current:
                return None
            changes["from_status"] = str(current.account_status)
            changes["to_status"] = str(updated.account_status)
            return updated

        record = self.store.update_by_provider_account_id(snapshot.id, mutate)

        if record is None:
            # Webhook raced account creation, or the account is not ours
            logger.info(
                "No connected account for Stripe account, ignoring",
                extra={"stripe_account_id": snapshot.id},
            )
            return None, False

        if changes:
            logger.info(
                "Connected account updated",
                extra={
                    "user_id": record.user_id,
                    "stripe_account_id": snapshot.id,
                    "onboarding_completed": record.onboarding_completed,
                    **changes,
                },
            )
        else:
            logger.debug(
                "Connected account already up to date",
                extra={"stripe_account_id": snapshot.id},
            )
        return record, bool(changes)

    @staticmethod
    def _merge_snapshot(current: AccountRecord, snapshot: ProviderAccount) -> AccountRecord:
        """Build the full replacement record for a snapshot."""
        onboarding_completed = snapshot.charges_enabled and snapshot.payouts_enabled
        return replace(
            current,
            email=snapshot.email or current.email,
            country=snapshot.country or current.country,
            default_currency=snapshot.default_currency or current.default_currency,
            account_status=derive_account_status(
                snapshot.charges_enabled,
                snapshot.payouts_enabled,
                snapshot.disabled_reason,
            ),
            charges_enabled=snapshot.charges_enabled,
            payouts_enabled=snapshot.payouts_enabled,
            details_submitted=snapshot.details_submitted,
            onboarding_url=None if onboarding_completed else current.onboarding_url,
            disabled_reason=snapshot.disabled_reason,
            requirements_currently_due=snapshot.requirements_currently_due,
            requirements_past_due=snapshot.requirements_past_due,
        )
