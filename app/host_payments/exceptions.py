"""
Host payment exceptions.

Every error raised by the engine inherits from HostPaymentsError, which in
turn inherits from core.exceptions.BaseApplicationError so views can render
any of them with to_dict().

Exception Hierarchy:
    HostPaymentsError (base)
    ├── ProviderConfigError - Missing/invalid Stripe credentials (fatal)
    ├── ProviderError - Base for Stripe call failures
    │   ├── ProviderClientError - Rejected request (permanent, caller-fixable)
    │   └── ProviderTransientError - Safe to retry with backoff
    │       ├── ProviderRateLimitError - Rate limited
    │       └── ProviderUnavailableError - Network error, timeout, 5xx
    └── WebhookVerificationError - Signature, replay window or body rejected

    AccountConflictError - Stripe account already owned by another user
                           (inherits ConflictError)

Usage:
    from host_payments.exceptions import ProviderError, ProviderTransientError

    try:
        provider.retrieve_account(account_id)
    except ProviderTransientError:
        refresh_connected_account.apply_async(args=[user_id], countdown=30)
    except ProviderError as e:
        logger.error("Stripe rejected the refresh", extra={"error_code": e.error_code})
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


class HostPaymentsError(BaseApplicationError):
    """Base exception for all host payment operations."""

    default_error_code: str = "HOST_PAYMENTS_ERROR"


class ProviderConfigError(HostPaymentsError):
    """
    Stripe is not configured correctly.

    Raised when the API key or webhook signing secret is missing, or when
    Stripe rejects our credentials. Never retried; an operator has to fix
    the environment.
    """

    default_error_code: str = "PROVIDER_CONFIG_ERROR"


# =============================================================================
# Stripe Call Failures
# =============================================================================


class ProviderError(HostPaymentsError):
    """
    Base exception for failed Stripe API calls.

    Attributes:
        stripe_code: Stripe's own error code, when it sent one
        is_retryable: Whether repeating the call may succeed
    """

    default_error_code: str = "PROVIDER_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code


class ProviderClientError(ProviderError):
    """
    Stripe rejected the request itself.

    Invalid parameters, unknown account ids and permission problems land
    here. Retrying the same request will fail the same way.
    """

    default_error_code: str = "PROVIDER_REQUEST_REJECTED"


class ProviderTransientError(ProviderError):
    """Temporary Stripe failure; retry with backoff."""

    default_error_code: str = "PROVIDER_TEMPORARILY_UNAVAILABLE"
    is_retryable: bool = True


class ProviderRateLimitError(ProviderTransientError):
    """Rate limited by the Stripe API."""

    default_error_code: str = "PROVIDER_RATE_LIMITED"


class ProviderUnavailableError(ProviderTransientError):
    """
    Stripe could not be reached or answered with a server error.

    Covers connection failures, timeouts and 5xx responses.
    """

    default_error_code: str = "PROVIDER_UNAVAILABLE"


# =============================================================================
# Webhook Verification
# =============================================================================


class WebhookVerificationError(HostPaymentsError):
    """
    A webhook delivery failed verification.

    Attributes:
        reason: One of WebhookRejection values (missing_timestamp, stale,
            bad_signature, malformed)
    """

    default_error_code: str = "WEBHOOK_VERIFICATION_FAILED"

    def __init__(
        self,
        message: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ):
        details = {**(details or {}), "reason": getattr(reason, "value", reason)}
        super().__init__(message, details=details)
        self.reason = reason


# =============================================================================
# Store Conflicts
# =============================================================================


class AccountConflictError(ConflictError):
    """
    The Stripe account id is already linked to a different user.

    Example:
        raise AccountConflictError(
            "Stripe account acct_123 already belongs to another user",
            details={"stripe_account_id": "acct_123", "user_id": 7},
        )
    """

    default_error_code: str = "ACCOUNT_CONFLICT"
