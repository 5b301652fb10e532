"""
Data types passed between the host payment components.

These are plain frozen dataclasses, independent of the ORM, so the
lifecycle manager can run against any AccountStore implementation and
tests can build them directly.

Types:
    ProviderAccount: Stripe's view of a connected account
    AccountRecord: Our stored view of a user's connected account
    WebhookEvent: A verified, parsed Stripe webhook delivery (never persisted)
    OnboardingLink: Result of creating an account
    AccountStatusSnapshot: Caller-facing status shape
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from host_payments.state_machines import AccountStatus

if TYPE_CHECKING:
    from datetime import datetime


def _as_dict(value: Any) -> dict[str, Any]:
    """Convert a Stripe object, mapping or None into a plain dict."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Cannot read {type(value).__name__} as a Stripe object")


# =============================================================================
# Provider Types
# =============================================================================


@dataclass(frozen=True)
class ProviderAccount:
    """
    A connected account as Stripe reports it.

    Built from the Stripe SDK response on create/retrieve and from
    data.object on account.* webhooks, so both update channels feed the
    lifecycle manager the same shape.

    Attributes:
        id: Stripe Account ID (acct_xxx)
        email: Account email, if Stripe has one
        country: Two-letter country code
        default_currency: Lowercase ISO currency code
        charges_enabled: Stripe's charges_enabled flag
        payouts_enabled: Stripe's payouts_enabled flag
        details_submitted: Whether the host finished the onboarding form
        disabled_reason: requirements.disabled_reason, if Stripe restricted it
        requirements_currently_due: Requirement codes currently due
        requirements_past_due: Requirement codes past due
        metadata: Metadata attached at creation (carries our user id)
        raw_response: Full Stripe payload (for debugging)
    """

    id: str
    email: str | None = None
    country: str | None = None
    default_currency: str | None = None
    charges_enabled: bool = False
    payouts_enabled: bool = False
    details_submitted: bool = False
    disabled_reason: str | None = None
    requirements_currently_due: tuple[str, ...] = ()
    requirements_past_due: tuple[str, ...] = ()
    metadata: dict[str, str] = field(default_factory=dict, compare=False)
    raw_response: dict[str, Any] = field(
        default_factory=dict, compare=False, repr=False
    )

    @classmethod
    def from_stripe(cls, account: Any) -> ProviderAccount:
        """
        Build from a stripe.Account or its dict form.

        Raises:
            ValueError: The object has no account id
        """
        data = _as_dict(account)
        account_id = data.get("id")
        if not account_id:
            raise ValueError("Stripe account object has no id")

        requirements = _as_dict(data.get("requirements"))
        return cls(
            id=account_id,
            email=data.get("email"),
            country=data.get("country"),
            default_currency=data.get("default_currency"),
            charges_enabled=bool(data.get("charges_enabled")),
            payouts_enabled=bool(data.get("payouts_enabled")),
            details_submitted=bool(data.get("details_submitted")),
            disabled_reason=requirements.get("disabled_reason"),
            requirements_currently_due=tuple(requirements.get("currently_due") or ()),
            requirements_past_due=tuple(requirements.get("past_due") or ()),
            metadata={k: str(v) for k, v in _as_dict(data.get("metadata")).items()},
            raw_response=data,
        )


@dataclass(frozen=True)
class OnboardingLink:
    """Account id and hosted onboarding URL returned to the host."""

    provider_account_id: str
    onboarding_url: str


# =============================================================================
# Stored Record
# =============================================================================


@dataclass(frozen=True)
class AccountRecord:
    """
    A user's connected account as we store it.

    Every write replaces the whole record. Equality ignores the
    bookkeeping fields (created_at, updated_at, version, last_synced_at),
    so comparing a freshly built record with the stored one tells whether a
    write would change anything.
    """

    user_id: int
    provider_account_id: str
    country: str
    default_currency: str
    account_status: AccountStatus
    email: str | None = None
    charges_enabled: bool = False
    payouts_enabled: bool = False
    details_submitted: bool = False
    onboarding_url: str | None = None
    disabled_reason: str | None = None
    requirements_currently_due: tuple[str, ...] = ()
    requirements_past_due: tuple[str, ...] = ()
    created_at: datetime | None = field(default=None, compare=False)
    updated_at: datetime | None = field(default=None, compare=False)
    version: int = field(default=0, compare=False)
    last_synced_at: datetime | None = field(default=None, compare=False)

    @property
    def onboarding_completed(self) -> bool:
        """True once Stripe enabled both charges and payouts."""
        return self.charges_enabled and self.payouts_enabled


# =============================================================================
# Webhook Event
# =============================================================================


@dataclass(frozen=True)
class WebhookEvent:
    """
    A verified Stripe webhook delivery.

    Attributes:
        id: Stripe event ID (evt_xxx)
        type: Event type (e.g., "account.updated")
        created: Event creation time (epoch seconds), if present
        provider_account_id: Connected account the event concerns
        account: Full account snapshot for account.* events, else None
        payload: The parsed JSON body
    """

    id: str
    type: str
    payload: dict[str, Any] = field(repr=False)
    created: int | None = None
    provider_account_id: str | None = None
    account: ProviderAccount | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> WebhookEvent:
        """
        Build from a parsed webhook body.

        Raises:
            ValueError: The body is not a Stripe event object
        """
        if not isinstance(payload, dict):
            raise ValueError("Webhook body is not a JSON object")

        event_id = payload.get("id")
        event_type = payload.get("type")
        if not event_id or not event_type:
            raise ValueError("Webhook body is missing id or type")

        data = payload.get("data")
        data_object = data.get("object") if isinstance(data, dict) else None
        account = None
        if isinstance(data_object, dict) and data_object.get("object") == "account":
            account = ProviderAccount.from_stripe(data_object)

        # Connect events name the account at the top level
        provider_account_id = payload.get("account") or (account.id if account else None)

        return cls(
            id=event_id,
            type=event_type,
            payload=payload,
            created=payload.get("created"),
            provider_account_id=provider_account_id,
            account=account,
        )


# =============================================================================
# Status Query Result
# =============================================================================


@dataclass(frozen=True)
class AccountStatusSnapshot:
    """Status of a user's connected account, as reported to callers."""

    has_account: bool
    charges_enabled: bool
    payouts_enabled: bool
    onboarding_completed: bool
    account_status: AccountStatus

    @classmethod
    def from_record(cls, record: AccountRecord | None) -> AccountStatusSnapshot:
        if record is None:
            return cls(
                has_account=False,
                charges_enabled=False,
                payouts_enabled=False,
                onboarding_completed=False,
                account_status=AccountStatus.NONE,
            )
        return cls(
            has_account=True,
            charges_enabled=record.charges_enabled,
            payouts_enabled=record.payouts_enabled,
            onboarding_completed=record.onboarding_completed,
            account_status=record.account_status,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_account": self.has_account,
            "charges_enabled": self.charges_enabled,
            "payouts_enabled": self.payouts_enabled,
            "onboarding_completed": self.onboarding_completed,
            "account_status": str(self.account_status),
        }
