"""
Account record persistence.

Two AccountStore implementations:
- DjangoAccountStore: ConnectedAccount rows, row-locked with
  select_for_update() inside transaction.atomic()
- InMemoryAccountStore: dicts guarded by one lock per user, for tests and
  local tooling

Both enforce one record per user and one record per Stripe account id,
replace whole records on every write, and make
update_by_provider_account_id() an atomic read-modify-write per key. No
lock ever spans two keys.

Usage:
    from host_payments.stores import DjangoAccountStore

    store = DjangoAccountStore()
    record = store.get_by_user(user.id)
    store.update_by_provider_account_id("acct_123", lambda current: replace(current, ...))
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import TYPE_CHECKING, Callable

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from host_payments.exceptions import AccountConflictError
from host_payments.models import ConnectedAccount

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from host_payments.state_machines import AccountStatus
    from host_payments.types import AccountRecord


logger = logging.getLogger(__name__)


def _conflict(record: AccountRecord) -> AccountConflictError:
    return AccountConflictError(
        f"Stripe account {record.provider_account_id} already belongs to another user",
        details={
            "stripe_account_id": record.provider_account_id,
            "user_id": record.user_id,
        },
    )


# =============================================================================
# Django ORM Store
# =============================================================================


class DjangoAccountStore:
    """AccountStore backed by the ConnectedAccount table."""

    def get_by_user(self, user_id: int) -> AccountRecord | None:
        account = ConnectedAccount.objects.filter(user_id=user_id).first()
        return account.to_record() if account else None

    def get_by_provider_account_id(self, provider_account_id: str) -> AccountRecord | None:
        account = ConnectedAccount.objects.filter(
            stripe_account_id=provider_account_id
        ).first()
        return account.to_record() if account else None

    def upsert(self, record: AccountRecord) -> AccountRecord:
        """
        Insert or fully replace the user's row.

        Raises:
            AccountConflictError: Another user's row has this Stripe account id
        """
        with transaction.atomic():
            if self._owned_by_other_user(record):
                raise _conflict(record)

            account = self._locked_row(record.user_id)
            if account is None:
                account = ConnectedAccount(user_id=record.user_id)

            account.apply_record(record)
            try:
                # Savepoint so a lost unique race leaves the outer block usable
                with transaction.atomic():
                    account.save()
            except IntegrityError as e:
                if not account._state.adding or self._owned_by_other_user(record):
                    raise _conflict(record) from e

                # Another request inserted this user's row first; replace it
                account = self._locked_row(record.user_id)
                if account is None:
                    raise
                account.apply_record(record)
                account.save()

        logger.debug(
            "Stored connected account",
            extra={
                "user_id": record.user_id,
                "stripe_account_id": record.provider_account_id,
                "account_status": str(record.account_status),
            },
        )
        return account.to_record()

    @staticmethod
    def _owned_by_other_user(record: AccountRecord) -> bool:
        return (
            ConnectedAccount.objects.filter(stripe_account_id=record.provider_account_id)
            .exclude(user_id=record.user_id)
            .exists()
        )

    @staticmethod
    def _locked_row(user_id: int) -> ConnectedAccount | None:
        return ConnectedAccount.objects.select_for_update().filter(user_id=user_id).first()

    def update_by_provider_account_id(
        self,
        provider_account_id: str,
        mutate: Callable[[AccountRecord], AccountRecord | None],
    ) -> AccountRecord | None:
        with transaction.atomic():
            account = (
                ConnectedAccount.objects.select_for_update()
                .filter(stripe_account_id=provider_account_id)
                .first()
            )
            if account is None:
                return None

            current = account.to_record()
            updated = mutate(current)
            if updated is None:
                return current

            account.apply_record(updated)
            account.save()
            return account.to_record()

    def list_user_ids_by_status(
        self,
        statuses: Iterable[AccountStatus],
        limit: int,
    ) -> list[int]:
        # Never synced first, then the stalest, so a full batch doesn't starve the rest
        return list(
            ConnectedAccount.objects.filter(account_status__in=list(statuses))
            .order_by(F("last_synced_at").asc(nulls_first=True), "created_at", "user_id")
            .values_list("user_id", flat=True)[:limit]
        )

    def mark_synced(self, user_id: int, synced_at: datetime) -> None:
        # update() skips save(), so version and updated_at are left alone
        ConnectedAccount.objects.filter(user_id=user_id).update(last_synced_at=synced_at)


# =============================================================================
# In-Memory Store
# =============================================================================


class InMemoryAccountStore:
    """
    AccountStore kept in process memory.

    Bookkeeping fields behave like the table: created_at is set once,
    updated_at and version change on every write, and last_synced_at only
    changes through mark_synced().
    """

    def __init__(self) -> None:
        self._records: dict[int, AccountRecord] = {}
        self._owners: dict[str, int] = {}
        self._guard = threading.Lock()
        self._user_locks: dict[int, threading.Lock] = {}

    def _lock_for(self, user_id: int) -> threading.Lock:
        with self._guard:
            return self._user_locks.setdefault(user_id, threading.Lock())

    def get_by_user(self, user_id: int) -> AccountRecord | None:
        with self._guard:
            return self._records.get(user_id)

    def get_by_provider_account_id(self, provider_account_id: str) -> AccountRecord | None:
        with self._guard:
            user_id = self._owners.get(provider_account_id)
            return self._records.get(user_id) if user_id is not None else None

    def _write(self, record: AccountRecord) -> AccountRecord:
        """Store a full record. Caller holds the user lock."""
        with self._guard:
            owner = self._owners.get(record.provider_account_id)
            if owner is not None and owner != record.user_id:
                raise _conflict(record)

            previous = self._records.get(record.user_id)
            now = timezone.now()
            stored = replace(
                record,
                created_at=previous.created_at if previous else now,
                updated_at=now,
                version=previous.version + 1 if previous else 1,
                last_synced_at=previous.last_synced_at if previous else None,
            )
            if previous and previous.provider_account_id != record.provider_account_id:
                self._owners.pop(previous.provider_account_id, None)
            self._records[record.user_id] = stored
            self._owners[record.provider_account_id] = record.user_id
            return stored

    def upsert(self, record: AccountRecord) -> AccountRecord:
        with self._lock_for(record.user_id):
            return self._write(record)

    def update_by_provider_account_id(
        self,
        provider_account_id: str,
        mutate: Callable[[AccountRecord], AccountRecord | None],
    ) -> AccountRecord | None:
        while True:
            current = self.get_by_provider_account_id(provider_account_id)
            if current is None:
                return None

            with self._lock_for(current.user_id):
                latest = self.get_by_provider_account_id(provider_account_id)
                if latest is None or latest.user_id != current.user_id:
                    # Owner changed while we waited for the lock
                    continue

                updated = mutate(latest)
                if updated is None:
                    return latest
                return self._write(updated)

    def list_user_ids_by_status(
        self,
        statuses: Iterable[AccountStatus],
        limit: int,
    ) -> list[int]:
        wanted = set(statuses)
        with self._guard:
            matching = sorted(
                (r for r in self._records.values() if r.account_status in wanted),
                key=lambda r: (
                    r.last_synced_at is not None,
                    r.last_synced_at or r.created_at,
                    r.created_at,
                    r.user_id,
                ),
            )
        return [r.user_id for r in matching[:limit]]

    def mark_synced(self, user_id: int, synced_at: datetime) -> None:
        with self._lock_for(user_id), self._guard:
            record = self._records.get(user_id)
            if record is not None:
                self._records[user_id] = replace(record, last_synced_at=synced_at)
