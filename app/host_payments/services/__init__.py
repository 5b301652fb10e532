"""
Host payment services.

This module provides:
- AccountLifecycleManager: Creates accounts, applies Stripe snapshots, reconciles
- AccountStatusService: Caller-facing status queries
- get_account_services: Process-wide wiring of the above

Usage:
    from host_payments.services import get_account_services

    services = get_account_services()
    link = services.lifecycle.create_account(user.id)
    snapshot = services.status.get_status(user.id, refresh_from_provider=False)
"""

from host_payments.services.factory import (
    AccountServices,
    build_account_services,
    get_account_services,
    reset_account_services,
)
from host_payments.services.lifecycle import AccountLifecycleManager
from host_payments.services.status import AccountStatusService

__all__ = [
    "AccountLifecycleManager",
    "AccountServices",
    "AccountStatusService",
    "build_account_services",
    "get_account_services",
    "reset_account_services",
]
