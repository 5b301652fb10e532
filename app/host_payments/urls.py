"""
URL configuration for the host payments app.

Routes:
    - POST /webhooks/stripe/ - Stripe webhook endpoint
    - POST /connect/accounts/ - Start Stripe Connect onboarding
    - GET /connect/accounts/status/ - Connected account status

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from host_payments.views import ConnectedAccountCreateView, ConnectedAccountStatusView
from host_payments.webhooks.views import stripe_webhook

app_name = "host_payments"

urlpatterns = [
    # Webhook endpoints
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    # Stripe Connect
    path(
        "connect/accounts/",
        ConnectedAccountCreateView.as_view(),
        name="connected_account_create",
    ),
    path(
        "connect/accounts/status/",
        ConnectedAccountStatusView.as_view(),
        name="connected_account_status",
    ),
]
