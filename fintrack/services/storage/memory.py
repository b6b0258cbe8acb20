"""
In-Memory Storage Implementation

Dict-backed stores used by tests and by the "memory" backend.
Batch operations check the whole batch before writing anything, so a
failed insert or update leaves the store exactly as it was.
"""

from typing import Any, Optional
from uuid import UUID

import pydantic
import structlog

from fintrack.models.account import Account, AccountType
from fintrack.models.audit import AuditEntityType, AuditEvent
from fintrack.models.filters import TransactionFilter
from fintrack.models.transaction import Transaction
from fintrack.services.storage.interface import (
    AccountStoreInterface,
    AuditStorageInterface,
    NotFoundError,
    PersistenceError,
    TransactionStoreInterface,
)

logger = structlog.get_logger(__name__)

SORTABLE_FIELDS = {"date", "created_at", "amount_cents", "description", "series_sequence"}


def sort_transactions(
    records: list[Transaction],
    order_by: str = "date",
    descending: bool = False,
) -> list[Transaction]:
    """Sort on one field; series position breaks ties so occurrences stay in order."""
    if order_by not in SORTABLE_FIELDS:
        raise PersistenceError(f"Cannot order transactions by {order_by!r}")
    return sorted(
        records,
        key=lambda txn: (getattr(txn, order_by), txn.series_sequence),
        reverse=descending,
    )


def apply_changes(txn: Transaction, changes: dict[str, Any]) -> Transaction:
    """Merge changes into a copy of txn and re-validate the result."""
    try:
        return Transaction.model_validate({**txn.model_dump(), **changes})
    except pydantic.ValidationError as e:
        raise PersistenceError(f"Update would leave transaction {txn.id} invalid: {e}") from e


class InMemoryTransactionStore(TransactionStoreInterface):
    """Transaction store kept in a dict keyed by id."""

    def __init__(self, records: Optional[list[Transaction]] = None):
        self._records: dict[UUID, Transaction] = {}
        if records:
            self.insert_batch(records)

    def __len__(self) -> int:
        return len(self._records)

    def insert_batch(self, records: list[Transaction]) -> list[Transaction]:
        ids = [record.id for record in records]
        if len(set(ids)) != len(ids):
            raise PersistenceError("Batch contains duplicate transaction ids")
        clashing = [str(record_id) for record_id in ids if record_id in self._records]
        if clashing:
            raise PersistenceError(f"Transactions already exist: {', '.join(clashing)}")

        for record in records:
            self._records[record.id] = record.model_copy(deep=True)

        logger.debug("store_batch_inserted", count=len(records))
        return [record.model_copy(deep=True) for record in records]

    def update_where(
        self,
        filter: TransactionFilter,
        changes: dict[str, Any],
    ) -> list[Transaction]:
        if filter.is_empty:
            raise PersistenceError("Refusing to update without a filter")

        targets = [txn for txn in self._records.values() if filter.matches(txn)]
        # Validate every merged record first, then commit all of them
        updated = [apply_changes(txn, changes) for txn in targets]
        for txn in updated:
            self._records[txn.id] = txn

        logger.debug("store_records_updated", count=len(updated), fields=sorted(changes))
        return [txn.model_copy(deep=True) for txn in sort_transactions(updated)]

    def delete_where(self, filter: TransactionFilter) -> int:
        if filter.is_empty:
            raise PersistenceError("Refusing to delete without a filter")

        doomed = [txn_id for txn_id, txn in self._records.items() if filter.matches(txn)]
        for txn_id in doomed:
            del self._records[txn_id]

        logger.debug("store_records_deleted", count=len(doomed))
        return len(doomed)

    def select_where(
        self,
        filter: TransactionFilter,
        order_by: str = "date",
        descending: bool = False,
    ) -> list[Transaction]:
        found = [txn for txn in self._records.values() if filter.matches(txn)]
        return [
            txn.model_copy(deep=True)
            for txn in sort_transactions(found, order_by, descending)
        ]


class InMemoryAccountStore(AccountStoreInterface):
    """Account store kept in a dict keyed by id."""

    def __init__(self, accounts: Optional[list[Account]] = None):
        self._accounts: dict[UUID, Account] = {}
        for account in accounts or []:
            self.save_account(account)

    def list_accounts(
        self,
        type: Optional[AccountType] = None,
        is_active: Optional[bool] = None,
    ) -> list[Account]:
        accounts = [
            account for account in self._accounts.values()
            if (type is None or account.type == type)
            and (is_active is None or account.is_active == is_active)
        ]
        accounts.sort(key=lambda account: account.name.lower())
        return [account.model_copy() for account in accounts]

    def get_account(self, account_id: UUID) -> Optional[Account]:
        account = self._accounts.get(account_id)
        return account.model_copy() if account else None

    def save_account(self, account: Account) -> Account:
        self._accounts[account.id] = account.model_copy()
        return account

    def update_account(self, account_id: UUID, changes: dict[str, Any]) -> Account:
        current = self._accounts.get(account_id)
        if current is None:
            raise NotFoundError(f"Account not found: {account_id}")
        try:
            updated = Account.model_validate({**current.model_dump(), **changes})
        except pydantic.ValidationError as e:
            raise PersistenceError(f"Update would leave account {account_id} invalid: {e}") from e
        self._accounts[account_id] = updated
        return updated.model_copy()

    def delete_account(self, account_id: UUID) -> bool:
        return self._accounts.pop(account_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(
        self,
        entity_type: AuditEntityType,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            event for event in self._events
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
