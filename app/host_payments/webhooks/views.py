"""
Webhook endpoint view for Stripe.

The view:
1. Verifies the Stripe-Signature header against the raw body
2. Dispatches the verified event to its handler synchronously
3. Returns {"received": true}

Account updates are a single row write, so they are applied inline rather
than queued; Stripe retries any delivery that doesn't get a 2xx.

Usage:
    # In urls.py
    from host_payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from host_payments.exceptions import ProviderConfigError, WebhookVerificationError
from host_payments.services import get_account_services
from host_payments.webhooks.handlers import dispatch_webhook

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive a Stripe webhook delivery.

    Security:
    - Signature verification over the raw body prevents spoofed webhooks
    - The signed timestamp must be within 5 minutes (replay protection)
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Returns:
        JsonResponse with status:
        - 200: Verified ({"received": true}), handled or not
        - 400: Missing header or verification failed
        - 500: Signing secret not configured

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    # request.body must be read before anything parses the request
    payload = request.body
    signature = request.headers.get("Stripe-Signature", "")

    if not signature:
        logger.warning("Webhook received without Stripe-Signature header")
        return JsonResponse(
            {"error": "Missing signature", "error_code": "MISSING_SIGNATURE"},
            status=400,
        )

    try:
        services = get_account_services()
    except ProviderConfigError as e:
        logger.critical("Stripe webhook received but Stripe is not configured")
        return JsonResponse(e.to_dict(), status=500)

    try:
        event = services.provider.verify_and_parse_event(
            payload, signature, services.config.webhook_secret
        )
    except WebhookVerificationError as e:
        return JsonResponse(e.to_dict(), status=400)

    logger.info(
        f"Received Stripe webhook: {event.type}",
        extra={
            "stripe_event_id": event.id,
            "event_type": event.type,
            "stripe_account_id": event.provider_account_id,
        },
    )

    result = dispatch_webhook(event, services.lifecycle)
    if not result.success:
        # Acknowledged anyway; redelivering the same body can't succeed
        logger.error(
            f"Webhook handler failed: {result.error}",
            extra={"stripe_event_id": event.id, "error_code": result.error_code},
        )

    return JsonResponse({"received": True}, status=200)
