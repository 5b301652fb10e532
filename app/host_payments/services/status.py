"""
Account status queries.

Answers "can this host take bookings and receive payouts?" for the app.
Holds no state of its own; every answer comes from the lifecycle manager's
reconcile(), which by default refreshes the record from Stripe first and
falls back to the stored record when Stripe is unavailable.

Usage:
    snapshot = status_service.get_status(user.id)
    if snapshot.onboarding_completed:
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.services import BaseService

from host_payments.types import AccountStatusSnapshot

if TYPE_CHECKING:
    from host_payments.services.lifecycle import AccountLifecycleManager


class AccountStatusService(BaseService):
    """Read-side facade over AccountLifecycleManager.reconcile()."""

    def __init__(self, lifecycle: AccountLifecycleManager):
        self.lifecycle = lifecycle

    def get_status(
        self,
        user_id: int,
        refresh_from_provider: bool = True,
    ) -> AccountStatusSnapshot:
        """
        Report the status of a user's connected account.

        Args:
            user_id: Host's user id
            refresh_from_provider: Pull the current state from Stripe first

        Returns:
            AccountStatusSnapshot; account_status is "none" and every flag
            False when the user has no account
        """
        record = self.lifecycle.reconcile(user_id, refresh_from_provider=refresh_from_provider)
        snapshot = AccountStatusSnapshot.from_record(record)

        self.get_logger().debug(
            "Reported connected account status",
            extra={
                "user_id": user_id,
                "account_status": str(snapshot.account_status),
                "refreshed": refresh_from_provider,
            },
        )
        return snapshot
