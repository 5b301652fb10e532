"""
Tests for the host payment data types.
"""

from dataclasses import replace

import pytest
from django.utils import timezone

from host_payments.state_machines import AccountStatus
from host_payments.types import (
    AccountRecord,
    AccountStatusSnapshot,
    ProviderAccount,
    WebhookEvent,
)


def stripe_account_dict(**overrides):
    data = {
        "id": "acct_123",
        "object": "account",
        "email": "host@example.com",
        "country": "MX",
        "default_currency": "mxn",
        "charges_enabled": True,
        "payouts_enabled": False,
        "details_submitted": True,
        "requirements": {
            "currently_due": ["external_account"],
            "past_due": [],
            "disabled_reason": None,
        },
        "metadata": {"user_id": "42"},
    }
    data.update(overrides)
    return data


class StripeLikeObject:
    """Minimal object exposing to_dict(), like stripe.StripeObject."""

    def __init__(self, data):
        self._data = data

    def to_dict(self):
        return self._data


# =============================================================================
# ProviderAccount
# =============================================================================


class TestProviderAccountFromStripe:
    """Tests for ProviderAccount.from_stripe."""

    def test_reads_dict(self):
        """Should read flags, requirements and metadata from a dict."""
        account = ProviderAccount.from_stripe(stripe_account_dict())

        assert account.id == "acct_123"
        assert account.charges_enabled is True
        assert account.payouts_enabled is False
        assert account.details_submitted is True
        assert account.requirements_currently_due == ("external_account",)
        assert account.requirements_past_due == ()
        assert account.disabled_reason is None
        assert account.metadata == {"user_id": "42"}

    def test_reads_stripe_object(self):
        """Should accept objects exposing to_dict()."""
        account = ProviderAccount.from_stripe(
            StripeLikeObject(
                stripe_account_dict(
                    requirements={"disabled_reason": "requirements.past_due"}
                )
            )
        )

        assert account.disabled_reason == "requirements.past_due"
        assert account.requirements_currently_due == ()

    def test_missing_fields_default_to_disabled(self):
        """Absent flags read as False."""
        account = ProviderAccount.from_stripe({"id": "acct_bare"})

        assert account.charges_enabled is False
        assert account.payouts_enabled is False
        assert account.email is None

    def test_requires_id(self):
        with pytest.raises(ValueError):
            ProviderAccount.from_stripe({"object": "account"})

    def test_raw_response_ignored_in_equality(self):
        """Two snapshots with the same state compare equal."""
        first = ProviderAccount.from_stripe(stripe_account_dict())
        second = ProviderAccount.from_stripe(stripe_account_dict(created=1700000000))

        assert first == second


# =============================================================================
# WebhookEvent
# =============================================================================


class TestWebhookEventFromPayload:
    """Tests for WebhookEvent.from_payload."""

    def test_account_event(self):
        """account.* events carry the full account snapshot."""
        event = WebhookEvent.from_payload(
            {
                "id": "evt_1",
                "type": "account.updated",
                "created": 1700000000,
                "account": "acct_123",
                "data": {"object": stripe_account_dict()},
            }
        )

        assert event.id == "evt_1"
        assert event.type == "account.updated"
        assert event.created == 1700000000
        assert event.provider_account_id == "acct_123"
        assert event.account is not None
        assert event.account.charges_enabled is True

    def test_account_id_from_object_when_not_connect_event(self):
        payload = {
            "id": "evt_2",
            "type": "account.updated",
            "data": {"object": stripe_account_dict(id="acct_456")},
        }

        assert WebhookEvent.from_payload(payload).provider_account_id == "acct_456"

    def test_non_account_event(self):
        """Other objects produce no account snapshot."""
        event = WebhookEvent.from_payload(
            {
                "id": "evt_3",
                "type": "payment_intent.succeeded",
                "data": {"object": {"id": "pi_1", "object": "payment_intent"}},
            }
        )

        assert event.account is None
        assert event.provider_account_id is None

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            "evt",
            {"type": "account.updated"},
            {"id": "evt_4"},
            {"id": "evt_5", "type": "account.updated", "data": {"object": {"object": "account"}}},
        ],
    )
    def test_rejects_non_events(self, payload):
        with pytest.raises(ValueError):
            WebhookEvent.from_payload(payload)


# =============================================================================
# AccountRecord / AccountStatusSnapshot
# =============================================================================


def make_record(**overrides):
    values = {
        "user_id": 1,
        "provider_account_id": "acct_123",
        "country": "MX",
        "default_currency": "mxn",
        "account_status": AccountStatus.PENDING,
    }
    values.update(overrides)
    return AccountRecord(**values)


class TestAccountRecord:
    """Tests for AccountRecord."""

    def test_onboarding_completed_requires_both_flags(self):
        assert make_record(charges_enabled=True, payouts_enabled=True).onboarding_completed
        assert not make_record(charges_enabled=True).onboarding_completed
        assert not make_record(payouts_enabled=True).onboarding_completed

    def test_equality_ignores_bookkeeping(self):
        """Timestamps and version don't make two records different."""
        record = make_record()
        stamped = replace(
            record,
            updated_at=timezone.now(),
            version=7,
            last_synced_at=timezone.now(),
        )

        assert record == stamped
        assert record != replace(record, charges_enabled=True)


class TestAccountStatusSnapshot:
    """Tests for AccountStatusSnapshot."""

    def test_no_record(self):
        snapshot = AccountStatusSnapshot.from_record(None)

        assert snapshot.to_dict() == {
            "has_account": False,
            "charges_enabled": False,
            "payouts_enabled": False,
            "onboarding_completed": False,
            "account_status": "none",
        }

    def test_active_record(self):
        record = make_record(
            charges_enabled=True,
            payouts_enabled=True,
            account_status=AccountStatus.ACTIVE,
        )

        data = AccountStatusSnapshot.from_record(record).to_dict()

        assert data["has_account"] is True
        assert data["onboarding_completed"] is True
        assert data["account_status"] == "active"
