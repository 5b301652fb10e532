"""
Celery tasks for connected account reconciliation.

This module provides async tasks for:
- Refreshing one host's connected account from Stripe
- Periodically sweeping accounts that are still pending or restricted

Webhooks are the primary update channel, but Stripe gives up on a
delivery after a few days of failures and we reject anything outside the
replay window. The periodic sweep pulls the state of every unsettled
account directly so a lost webhook never leaves a host stuck.

Usage:
    from host_payments.tasks import refresh_connected_account

    # Refresh after the host returns from onboarding
    refresh_connected_account.delay(user.id)

    # Sweep unsettled accounts (scheduled by celery-beat every 30 minutes)
    from host_payments.tasks import sync_unsettled_accounts
    sync_unsettled_accounts.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from host_payments.exceptions import ProviderError
from host_payments.services import get_account_services
from host_payments.state_machines import UNSETTLED_STATUSES

logger = logging.getLogger(__name__)


@shared_task(bind=True, acks_late=True)
def refresh_connected_account(self, user_id: int) -> dict:
    """
    Refresh one host's connected account from Stripe.

    A Stripe failure is logged by the lifecycle manager and the stored
    record is kept.

    Args:
        user_id: Host's user id

    Returns:
        Dict with the resulting status
    """
    services = get_account_services()
    record = services.lifecycle.reconcile(user_id, refresh_from_provider=True)

    if record is None:
        logger.info("No connected account to refresh", extra={"user_id": user_id})
        return {"status": "not_found", "user_id": user_id}

    return {
        "status": "ok",
        "user_id": user_id,
        "account_status": str(record.account_status),
        "onboarding_completed": record.onboarding_completed,
    }


@shared_task(bind=True, acks_late=True)
def sync_unsettled_accounts(self, batch_size: int | None = None) -> dict:
    """
    Reconcile accounts that are still pending or restricted.

    Accounts never synced are visited first, then the least recently
    synced, so every unsettled account gets its turn. A Stripe failure for
    one account is counted and the sweep moves on.

    Args:
        batch_size: Maximum accounts to visit (default:
            CONNECT_SYNC_BATCH_SIZE)

    Returns:
        Dict with checked, changed and failed counts
    """
    services = get_account_services()
    batch_size = batch_size or services.config.sync_batch_size

    user_ids = services.store.list_user_ids_by_status(UNSETTLED_STATUSES, batch_size)
    checked = changed = failed = 0

    for user_id in user_ids:
        try:
            record, updated = services.lifecycle.refresh(user_id)
        except ProviderError as e:
            checked += 1
            failed += 1
            logger.warning(
                "Could not refresh connected account",
                extra={"user_id": user_id, "error_code": e.error_code},
            )
            continue

        if record is None:
            continue
        checked += 1
        if updated:
            changed += 1

    result = {"checked": checked, "changed": changed, "failed": failed}
    logger.info("Unsettled account sync finished", extra=result)
    return result
