"""
Payment provider adapters.

Usage:
    from host_payments.adapters import StripeAdapter
"""

from host_payments.adapters.stripe_adapter import StripeAdapter

__all__ = ["StripeAdapter"]
