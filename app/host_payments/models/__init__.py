"""
Host payment models.

Usage:
    from host_payments.models import ConnectedAccount
"""

from host_payments.models.connected_account import ConnectedAccount

__all__ = ["ConnectedAccount"]
