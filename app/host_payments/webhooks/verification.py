"""
Stripe webhook signature verification.

Stripe signs every delivery with the endpoint's signing secret and sends
the result in the Stripe-Signature header:

    Stripe-Signature: t=1614556800,v1=5257a869...,v0=6ffbb59b...

The signed content is "{t}.{raw body}" and v1 is its hex HMAC-SHA256.
Verification runs these checks, in order, and the first failure rejects
the delivery:

    1. t is present and an integer          → missing_timestamp
    2. t is within the tolerance of now     → stale (replay protection,
                                              both directions)
    3. the body is UTF-8                    → malformed
    4. some v1 matches (stripe SDK check)   → bad_signature
    5. the body is a Stripe event object    → malformed

The HMAC comparison is stripe.WebhookSignature.verify_header(). The SDK
only rejects timestamps in the past, so the window is checked here first.
More than one v1 may be present while Stripe rolls a signing secret; any
single match is accepted.

Usage:
    from host_payments.webhooks.verification import WebhookVerifier

    verifier = WebhookVerifier(tolerance_seconds=300)
    event = verifier.verify(request.body, request.headers["Stripe-Signature"], secret)
"""

from __future__ import annotations

import json
import logging
import time
from enum import Enum

import stripe

from host_payments.exceptions import WebhookVerificationError
from host_payments.types import WebhookEvent

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300
SIGNATURE_SCHEME = stripe.WebhookSignature.EXPECTED_SCHEME


class WebhookRejection(str, Enum):
    """Why a webhook delivery was rejected."""

    MISSING_TIMESTAMP = "missing_timestamp"
    STALE = "stale"
    BAD_SIGNATURE = "bad_signature"
    MALFORMED = "malformed"


# =============================================================================
# Header Parsing
# =============================================================================


def parse_signature_header(header: str) -> tuple[int | None, list[str]]:
    """
    Split a Stripe-Signature header into its timestamp and v1 signatures.

    Returns:
        (timestamp, signatures): timestamp is None when t is absent or not
        an integer; signatures lists every v1 value in header order
    """
    timestamp: int | None = None
    signatures: list[str] = []

    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                timestamp = None
        elif key == SIGNATURE_SCHEME:
            signatures.append(value)

    return timestamp, signatures


# =============================================================================
# Signature Check
# =============================================================================


def verify_signature(
    payload: bytes,
    signature: str | list[str],
    timestamp: int | str | None,
    secret: str,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> None:
    """
    Check the timestamp and signature of a delivery.

    Args:
        payload: Raw request body, exactly as received
        signature: Hex signature, or several (any one may match)
        timestamp: Epoch seconds the provider signed at
        secret: Endpoint signing secret
        tolerance_seconds: Maximum |now - timestamp|
        now: Current epoch time (defaults to time.time())

    Raises:
        WebhookVerificationError: reason is missing_timestamp, stale,
            malformed (body is not UTF-8) or bad_signature
    """
    if timestamp is None or isinstance(timestamp, bool):
        raise WebhookVerificationError(
            "Webhook signature has no timestamp",
            reason=WebhookRejection.MISSING_TIMESTAMP,
        )
    try:
        timestamp = int(timestamp)
    except (TypeError, ValueError):
        raise WebhookVerificationError(
            "Webhook signature timestamp is not an integer",
            reason=WebhookRejection.MISSING_TIMESTAMP,
        ) from None

    now = time.time() if now is None else now
    age = abs(now - timestamp)
    if age > tolerance_seconds:
        raise WebhookVerificationError(
            "Webhook timestamp is outside the tolerance window",
            reason=WebhookRejection.STALE,
            details={"age_seconds": int(age), "tolerance_seconds": tolerance_seconds},
        )

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise WebhookVerificationError(
            "Webhook body is not valid UTF-8",
            reason=WebhookRejection.MALFORMED,
        ) from None

    candidates = [signature] if isinstance(signature, str) else list(signature)
    # Hex digests are ASCII; anything else can't match and breaks compare_digest
    candidates = [c for c in candidates if c and c.isascii()]
    if not candidates:
        raise WebhookVerificationError(
            "Webhook signature does not match",
            reason=WebhookRejection.BAD_SIGNATURE,
        )

    header = ",".join(
        [f"t={timestamp}"] + [f"{SIGNATURE_SCHEME}={c}" for c in candidates]
    )
    try:
        # Window already checked in both directions above
        stripe.WebhookSignature.verify_header(body, header, secret)
    except stripe.SignatureVerificationError as e:
        raise WebhookVerificationError(
            "Webhook signature does not match",
            reason=WebhookRejection.BAD_SIGNATURE,
        ) from e


# =============================================================================
# Verifier
# =============================================================================


class WebhookVerifier:
    """
    Verifies Stripe-Signature headers and parses the signed body.

    Stateless; one instance is shared by every request.
    """

    def __init__(self, tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS):
        self.tolerance_seconds = tolerance_seconds

    def verify(self, payload: bytes, signature_header: str, secret: str) -> WebhookEvent:
        """
        Verify a delivery and parse it into a WebhookEvent.

        Args:
            payload: Raw request body, before any parsing
            signature_header: Stripe-Signature header value
            secret: Endpoint signing secret

        Returns:
            The parsed WebhookEvent

        Raises:
            WebhookVerificationError: The delivery must be rejected
        """
        timestamp, signatures = parse_signature_header(signature_header or "")

        try:
            verify_signature(
                payload,
                signatures,
                timestamp,
                secret,
                tolerance_seconds=self.tolerance_seconds,
            )
        except WebhookVerificationError as e:
            # Signature failures can be forged or replayed deliveries
            logger.warning(
                "Webhook verification failed",
                extra=e.details,
            )
            raise

        try:
            event = WebhookEvent.from_payload(json.loads(payload))
        except (TypeError, ValueError) as e:
            # Stripe signed it, so a bad body means something upstream broke
            logger.error(
                "Signed webhook body could not be parsed",
                extra={"reason": WebhookRejection.MALFORMED.value, "error": str(e)},
            )
            raise WebhookVerificationError(
                "Webhook body is not a valid Stripe event",
                reason=WebhookRejection.MALFORMED,
            ) from e

        logger.debug(
            "Webhook verified",
            extra={"stripe_event_id": event.id, "event_type": event.type},
        )
        return event
