"""
Status enum for connected accounts.

Account Status Flow:
    none → pending → active
    pending → restricted
    active ⇄ restricted

Transitions are never applied one step at a time. Stripe events can arrive
late, twice or out of order, so the status is always recomputed from the
latest provider snapshot with derive_account_status(). Whatever order the
snapshots arrive in, the stored status matches the last one applied.
"""

from __future__ import annotations

from django.db import models


class AccountStatus(models.TextChoices):
    """
    Eligibility status of a host's Stripe connected account.

    NONE is never stored; it is what status queries report for users
    without an account row.
    """

    NONE = "none", "No Account"
    PENDING = "pending", "Pending"
    ACTIVE = "active", "Active"
    RESTRICTED = "restricted", "Restricted"


# Statuses the background sync keeps polling Stripe for
UNSETTLED_STATUSES = (AccountStatus.PENDING, AccountStatus.RESTRICTED)


def derive_account_status(
    charges_enabled: bool,
    payouts_enabled: bool,
    disabled_reason: str | None = None,
) -> AccountStatus:
    """
    Compute the account status from Stripe's capability flags.

    Rules, in order:
        - charges and payouts both enabled → ACTIVE
        - Stripe reports a disabled_reason → RESTRICTED
        - otherwise → PENDING (onboarding not finished)

    Args:
        charges_enabled: Stripe's charges_enabled flag
        payouts_enabled: Stripe's payouts_enabled flag
        disabled_reason: Stripe's requirements.disabled_reason, if any

    Returns:
        The derived AccountStatus (never NONE)
    """
    if charges_enabled and payouts_enabled:
        return AccountStatus.ACTIVE
    if disabled_reason:
        return AccountStatus.RESTRICTED
    return AccountStatus.PENDING
