"""
Webhook event handlers for Stripe events.

This module provides a handler registry and the handlers for the Stripe
event types that change connected account state.

Only account.updated drives account state. Every other event type that
reaches dispatch_webhook() is acknowledged and ignored, so Stripe stops
retrying it.

Usage:
    from host_payments.webhooks.handlers import dispatch_webhook, register_handler

    # Register a custom handler
    @register_handler("capability.updated")
    def handle_capability_updated(event, lifecycle) -> ServiceResult:
        ...

    # Dispatch a verified event
    result = dispatch_webhook(event, services.lifecycle)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from core.services import ServiceResult

if TYPE_CHECKING:
    from host_payments.services.lifecycle import AccountLifecycleManager
    from host_payments.types import WebhookEvent

    WebhookHandler = Callable[[WebhookEvent, AccountLifecycleManager], ServiceResult]


logger = logging.getLogger(__name__)

ACCOUNT_UPDATED = "account.updated"


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, WebhookHandler] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Args:
        event_type: The Stripe event type (e.g., "account.updated")

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: WebhookHandler) -> WebhookHandler:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(
    event: WebhookEvent,
    lifecycle: AccountLifecycleManager,
) -> ServiceResult:
    """
    Dispatch a verified webhook event to its handler.

    Args:
        event: The verified WebhookEvent
        lifecycle: Lifecycle manager the handler applies changes through

    Returns:
        ServiceResult from the handler, or success(None) if no handler is
        registered for the event type
    """
    handler = WEBHOOK_HANDLERS.get(event.type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {event.type}",
            extra={"stripe_event_id": event.id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {event.type} to handler",
        extra={"stripe_event_id": event.id},
    )
    return handler(event, lifecycle)


# =============================================================================
# Connected Account Handler
# =============================================================================


@register_handler(ACCOUNT_UPDATED)
def handle_account_updated(
    event: WebhookEvent,
    lifecycle: AccountLifecycleManager,
) -> ServiceResult:
    """
    Handle connected account updates from Stripe.

    Fired when onboarding completes, capabilities change, or Stripe
    restricts or re-enables the account. The event carries the full
    account object, which is applied as-is.

    Returns:
        ServiceResult with the updated AccountRecord, success(None) for
        accounts we don't know, or failure when the event has no account
    """
    if event.account is None:
        logger.error(
            "account.updated without an account object",
            extra={"stripe_event_id": event.id},
        )
        return ServiceResult.failure(
            "Could not extract account from webhook",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    logger.info(
        "Processing account.updated",
        extra={
            "stripe_event_id": event.id,
            "stripe_account_id": event.account.id,
            "charges_enabled": event.account.charges_enabled,
            "payouts_enabled": event.account.payouts_enabled,
            "requirements_due": len(event.account.requirements_currently_due)
            + len(event.account.requirements_past_due),
        },
    )

    record = lifecycle.apply_provider_snapshot(event.account)
    return ServiceResult.success(record)
