"""
Host payments app: Stripe Connect onboarding and account reconciliation.

This app keeps a local record of each host's Stripe connected account in
sync with Stripe through two independent channels:
- The host creating an account or asking for its status (synchronous)
- Stripe pushing signed account.updated webhooks (asynchronous)

Both channels, and the periodic sweep that catches lost webhooks, funnel
into the same idempotent full-record upsert in AccountLifecycleManager,
so deliveries may arrive late, twice, or out of order.

Related modules:
    - host_payments.adapters: Stripe SDK wrapper (ProviderClient)
    - host_payments.stores: Persistence (AccountStore)
    - host_payments.webhooks: Signature verification, handlers, endpoint
    - host_payments.services: Lifecycle manager, status query, wiring
    - host_payments.tasks: Background reconciliation (Celery)

Usage:
    from host_payments.services import get_account_services

    services = get_account_services()
    link = services.lifecycle.create_account(user.id)
    snapshot = services.status.get_status(user.id)
"""
