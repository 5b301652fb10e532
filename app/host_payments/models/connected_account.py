"""
ConnectedAccount model for Stripe Connect onboarding.

One row per host user, linking them to their Stripe Express account and
caching the eligibility flags Stripe last reported. Rows are written only
through host_payments.stores, which the lifecycle manager drives; nothing
else should save them.

Usage:
    from host_payments.models import ConnectedAccount

    account = ConnectedAccount.objects.get(user=user)
    if account.onboarding_completed:
        # Host can receive bookings and payouts
        pass

    record = account.to_record()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from host_payments.state_machines import AccountStatus
from host_payments.types import AccountRecord


class ConnectedAccount(UUIDPrimaryKeyMixin, BaseModel):
    """
    A host's Stripe connected account.

    Fields:
        user: OneToOne link to the host
        stripe_account_id: Unique Stripe Account ID (acct_xxx)
        email: Account email reported by Stripe
        country: Two-letter country code
        default_currency: Lowercase ISO currency code
        account_status: Derived from the capability flags, never set directly
        charges_enabled / payouts_enabled / details_submitted: Stripe flags
        onboarding_url: Last onboarding link, cleared once onboarding completes
        disabled_reason: Stripe's restriction reason, if any
        requirements_currently_due / requirements_past_due: Requirement codes
        version: Optimistic locking version, incremented on every save
        last_synced_at: When the account was last pulled from Stripe; the
            unsettled sweep visits the stalest first

    Note:
        The user field uses PROTECT on_delete; rows are never deleted, only
        moved between statuses.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="connected_account",
        help_text="Host this connected account belongs to",
    )

    stripe_account_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Account ID (acct_xxx)",
    )

    email = models.CharField(
        max_length=254,
        null=True,
        blank=True,
        help_text="Account email as reported by Stripe",
    )

    country = models.CharField(
        max_length=2,
        help_text="Two-letter country code",
    )

    default_currency = models.CharField(
        max_length=3,
        help_text="Default settlement currency (lowercase ISO code)",
    )

    account_status = models.CharField(
        max_length=20,
        choices=AccountStatus.choices,
        default=AccountStatus.PENDING,
        db_index=True,
        help_text="Eligibility status derived from Stripe's capability flags",
    )

    charges_enabled = models.BooleanField(
        default=False,
        help_text="Whether Stripe has enabled charges for this account",
    )

    payouts_enabled = models.BooleanField(
        default=False,
        help_text="Whether Stripe has enabled payouts for this account",
    )

    details_submitted = models.BooleanField(
        default=False,
        help_text="Whether the host submitted the onboarding form",
    )

    onboarding_url = models.TextField(
        null=True,
        blank=True,
        help_text="Short-lived Stripe onboarding link",
    )

    disabled_reason = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Why Stripe restricted the account, if it did",
    )

    requirements_currently_due = models.JSONField(
        default=list,
        blank=True,
        help_text="Stripe requirement codes currently due",
    )

    requirements_past_due = models.JSONField(
        default=list,
        blank=True,
        help_text="Stripe requirement codes past due",
    )

    last_synced_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="When the account was last pulled from Stripe",
    )

    # Optimistic locking
    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Connected Account"
        verbose_name_plural = "Connected Accounts"

    def __str__(self) -> str:
        return f"ConnectedAccount({self.stripe_account_id}, {self.account_status})"

    def save(self, *args, **kwargs):
        """
        Save with version auto-increment for optimistic locking.

        On update (not force_insert), atomically increments the version
        field to detect concurrent modifications.
        """
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if is_update:
            # Refresh to get actual version value after F() expression
            self.refresh_from_db(fields=["version"])

    @property
    def onboarding_completed(self) -> bool:
        """True once Stripe enabled both charges and payouts."""
        return self.charges_enabled and self.payouts_enabled

    def to_record(self) -> AccountRecord:
        """Convert to the ORM-independent AccountRecord."""
        return AccountRecord(
            user_id=self.user_id,
            provider_account_id=self.stripe_account_id,
            email=self.email,
            country=self.country,
            default_currency=self.default_currency,
            account_status=AccountStatus(self.account_status),
            charges_enabled=self.charges_enabled,
            payouts_enabled=self.payouts_enabled,
            details_submitted=self.details_submitted,
            onboarding_url=self.onboarding_url,
            disabled_reason=self.disabled_reason,
            requirements_currently_due=tuple(self.requirements_currently_due or ()),
            requirements_past_due=tuple(self.requirements_past_due or ()),
            created_at=self.created_at,
            updated_at=self.updated_at,
            version=self.version,
            last_synced_at=self.last_synced_at,
        )

    def apply_record(self, record: AccountRecord) -> None:
        """Copy every stored field from a full replacement record."""
        self.user_id = record.user_id
        self.stripe_account_id = record.provider_account_id
        self.email = record.email
        self.country = record.country
        self.default_currency = record.default_currency
        self.account_status = record.account_status
        self.charges_enabled = record.charges_enabled
        self.payouts_enabled = record.payouts_enabled
        self.details_submitted = record.details_submitted
        self.onboarding_url = record.onboarding_url
        self.disabled_reason = record.disabled_reason
        self.requirements_currently_due = list(record.requirements_currently_due)
        self.requirements_past_due = list(record.requirements_past_due)
