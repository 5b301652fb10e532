"""
Account status enums and derivation.

Usage:
    from host_payments.state_machines import AccountStatus, derive_account_status
"""

from host_payments.state_machines.states import (
    UNSETTLED_STATUSES,
    AccountStatus,
    derive_account_status,
)

__all__ = [
    "AccountStatus",
    "UNSETTLED_STATUSES",
    "derive_account_status",
]
