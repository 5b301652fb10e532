"""
Stripe webhook processing.

Modules:
    - verification: Stripe-Signature checks and body parsing
    - handlers: Event type → handler registry
    - views: The HTTP endpoint Stripe posts to
"""
