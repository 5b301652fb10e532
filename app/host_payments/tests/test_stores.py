"""
Tests for the AccountStore implementations.

Every behavioural test runs against both the database store and the
in-memory store.
"""

from dataclasses import replace
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from host_payments.exceptions import AccountConflictError
from host_payments.models import ConnectedAccount
from host_payments.protocols import AccountStore
from host_payments.state_machines import AccountStatus
from host_payments.stores import DjangoAccountStore, InMemoryAccountStore
from host_payments.tests.factories import UserFactory
from host_payments.types import AccountRecord


@pytest.fixture(params=["django", "memory"])
def store(request):
    if request.param == "django":
        request.getfixturevalue("db")
        return DjangoAccountStore()
    return InMemoryAccountStore()


@pytest.fixture
def make_user(store):
    """Return user ids valid for the store under test."""
    if isinstance(store, DjangoAccountStore):
        return lambda: UserFactory().pk
    counter = iter(range(1, 1000))
    return lambda: next(counter)


def pending_record(user_id, account_id, **overrides):
    values = {
        "user_id": user_id,
        "provider_account_id": account_id,
        "country": "MX",
        "default_currency": "mxn",
        "account_status": AccountStatus.PENDING,
        "onboarding_url": f"https://connect.stripe.com/setup/e/{account_id}",
        "requirements_currently_due": ("external_account",),
    }
    values.update(overrides)
    return AccountRecord(**values)


class TestUpsert:
    """Tests for AccountStore.upsert."""

    def test_insert(self, store, make_user):
        user_id = make_user()

        stored = store.upsert(pending_record(user_id, "acct_1"))

        assert stored.version == 1
        assert stored.created_at is not None
        assert store.get_by_user(user_id) == stored
        assert store.get_by_provider_account_id("acct_1") == stored

    def test_replace_bumps_version(self, store, make_user):
        user_id = make_user()
        first = store.upsert(pending_record(user_id, "acct_1"))

        second = store.upsert(replace(first, charges_enabled=True))

        assert second.version == first.version + 1
        assert second.created_at == first.created_at
        assert second.charges_enabled is True

    def test_replace_with_new_account_id(self, store, make_user):
        user_id = make_user()
        store.upsert(pending_record(user_id, "acct_old"))

        store.upsert(pending_record(user_id, "acct_new"))

        assert store.get_by_provider_account_id("acct_old") is None
        assert store.get_by_user(user_id).provider_account_id == "acct_new"

    def test_account_id_owned_by_other_user(self, store, make_user):
        owner, other = make_user(), make_user()
        store.upsert(pending_record(owner, "acct_1"))

        with pytest.raises(AccountConflictError) as exc_info:
            store.upsert(pending_record(other, "acct_1"))

        assert exc_info.value.error_code == "ACCOUNT_CONFLICT"
        assert store.get_by_user(other) is None
        assert store.get_by_provider_account_id("acct_1").user_id == owner

    def test_lookups_miss(self, store):
        assert store.get_by_user(12345) is None
        assert store.get_by_provider_account_id("acct_nope") is None


class TestUpdateByProviderAccountId:
    """Tests for AccountStore.update_by_provider_account_id."""

    def test_applies_mutation(self, store, make_user):
        user_id = make_user()
        store.upsert(pending_record(user_id, "acct_1"))

        updated = store.update_by_provider_account_id(
            "acct_1",
            lambda current: replace(
                current,
                charges_enabled=True,
                payouts_enabled=True,
                account_status=AccountStatus.ACTIVE,
            ),
        )

        assert updated.account_status == AccountStatus.ACTIVE
        assert updated.version == 2
        assert store.get_by_user(user_id) == updated

    def test_none_means_no_write(self, store, make_user):
        user_id = make_user()
        stored = store.upsert(pending_record(user_id, "acct_1"))

        result = store.update_by_provider_account_id("acct_1", lambda current: None)

        assert result == stored
        assert result.version == stored.version
        assert result.updated_at == stored.updated_at

    def test_unknown_account(self, store):
        calls = []

        result = store.update_by_provider_account_id("acct_missing", calls.append)

        assert result is None
        assert calls == []

    def test_mutation_sees_current_record(self, store, make_user):
        user_id = make_user()
        store.upsert(pending_record(user_id, "acct_1", email="a@example.com"))
        seen = []

        def mutate(current):
            seen.append(current)
            return None

        store.update_by_provider_account_id("acct_1", mutate)

        assert seen[0].email == "a@example.com"
        assert seen[0].user_id == user_id


class TestListUserIdsByStatus:
    """Tests for AccountStore.list_user_ids_by_status."""

    def test_filters_and_limits(self, store, make_user):
        pending_a, active, restricted, pending_b = (make_user() for _ in range(4))
        store.upsert(pending_record(pending_a, "acct_a"))
        store.upsert(
            pending_record(active, "acct_b", account_status=AccountStatus.ACTIVE)
        )
        store.upsert(
            pending_record(restricted, "acct_c", account_status=AccountStatus.RESTRICTED)
        )
        store.upsert(pending_record(pending_b, "acct_d"))

        unsettled = store.list_user_ids_by_status(
            [AccountStatus.PENDING, AccountStatus.RESTRICTED], limit=10
        )

        assert sorted(unsettled) == sorted([pending_a, restricted, pending_b])
        assert len(store.list_user_ids_by_status([AccountStatus.PENDING], limit=1)) == 1

    def test_never_synced_first_then_stalest(self, store, make_user):
        first, second, third = make_user(), make_user(), make_user()
        for user_id, account_id in [(first, "acct_1"), (second, "acct_2"), (third, "acct_3")]:
            store.upsert(pending_record(user_id, account_id))

        store.mark_synced(first, timezone.now())
        store.mark_synced(second, timezone.now() - timedelta(hours=1))

        assert store.list_user_ids_by_status([AccountStatus.PENDING], limit=10) == [
            third,
            second,
            first,
        ]

    def test_writes_do_not_reorder(self, store, make_user):
        """Only syncing moves an account back; a webhook write does not."""
        first, second = make_user(), make_user()
        record = store.upsert(pending_record(first, "acct_1"))
        store.upsert(pending_record(second, "acct_2"))

        store.upsert(replace(record, details_submitted=True))

        assert store.list_user_ids_by_status([AccountStatus.PENDING], limit=10) == [
            first,
            second,
        ]


class TestMarkSynced:
    """Tests for AccountStore.mark_synced."""

    def test_stamps_without_bumping_version(self, store, make_user):
        user_id = make_user()
        stored = store.upsert(pending_record(user_id, "acct_1"))
        synced_at = timezone.now()

        store.mark_synced(user_id, synced_at)

        after = store.get_by_user(user_id)
        assert after.last_synced_at == synced_at
        assert after.version == stored.version
        assert after.updated_at == stored.updated_at

    def test_survives_later_writes(self, store, make_user):
        user_id = make_user()
        stored = store.upsert(pending_record(user_id, "acct_1"))
        synced_at = timezone.now()
        store.mark_synced(user_id, synced_at)

        after = store.upsert(replace(stored, details_submitted=True))

        assert after.last_synced_at == synced_at

    def test_unknown_user(self, store):
        store.mark_synced(12345, timezone.now())

        assert store.get_by_user(12345) is None


@pytest.mark.django_db
class TestDjangoUpsertRace:
    """Two first-time upserts for the same user racing on the user key."""

    def test_lost_insert_replaces_winner_row(self, user):
        store = DjangoAccountStore()
        store.upsert(pending_record(user.pk, "acct_winner"))
        lookups = []

        def stale_lookup(user_id):
            # The first lookup ran before the other request committed
            lookups.append(user_id)
            if len(lookups) == 1:
                return None
            return ConnectedAccount.objects.select_for_update().get(user_id=user_id)

        with patch.object(DjangoAccountStore, "_locked_row", side_effect=stale_lookup):
            stored = store.upsert(pending_record(user.pk, "acct_loser"))

        assert len(lookups) == 2
        assert stored.provider_account_id == "acct_loser"
        assert ConnectedAccount.objects.filter(user_id=user.pk).count() == 1
        assert store.get_by_provider_account_id("acct_winner") is None

    def test_stripe_id_race_is_still_a_conflict(self, user):
        store = DjangoAccountStore()
        other = UserFactory()
        store.upsert(pending_record(other.pk, "acct_1"))

        # The ownership pre-check ran before the other user's row existed
        with patch.object(
            DjangoAccountStore, "_owned_by_other_user", side_effect=[False, True]
        ):
            with pytest.raises(AccountConflictError):
                store.upsert(pending_record(user.pk, "acct_1"))

        assert store.get_by_user(user.pk) is None


def test_stores_satisfy_protocol(store):
    assert isinstance(store, AccountStore)
