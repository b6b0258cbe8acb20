"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Add caching layers outside the core, invalidated by the caller
4. Keep series logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
A transaction store only needs batch insert, update/delete by filter
and select by filter. Filters are always conjunctions.

Every store is scoped to one user by whoever builds it; the core never
sees user identity.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from fintrack.errors import ConnectionError, NotFoundError, PersistenceError
from fintrack.models.account import Account, AccountType
from fintrack.models.audit import AuditEntityType, AuditEvent
from fintrack.models.filters import TransactionFilter
from fintrack.models.transaction import Transaction


class TransactionStoreInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    def insert_batch(self, records: list[Transaction]) -> list[Transaction]:
        """
        Insert records all-or-nothing.

        Args:
            records: The records to insert

        Returns:
            The inserted records

        Raises:
            PersistenceError: If any record could not be written. No
                record of the batch is left behind in that case.
        """
        pass

    @abstractmethod
    def update_where(
        self,
        filter: TransactionFilter,
        changes: dict[str, Any],
    ) -> list[Transaction]:
        """
        Apply the same field changes to every matching record.

        Args:
            filter: Which records to touch
            changes: Field values to write; None values clear the field

        Returns:
            The updated records

        Raises:
            PersistenceError: If the update fails
        """
        pass

    @abstractmethod
    def delete_where(self, filter: TransactionFilter) -> int:
        """
        Delete every matching record.

        Returns:
            Number of records deleted
        """
        pass

    @abstractmethod
    def select_where(
        self,
        filter: TransactionFilter,
        order_by: str = "date",
        descending: bool = False,
    ) -> list[Transaction]:
        """
        List records matching the filter.

        Args:
            filter: Predicates to apply
            order_by: Transaction field to sort on
            descending: Newest/largest first when True

        Returns:
            List of matching records
        """
        pass

    def get(self, transaction_id: UUID) -> Optional[Transaction]:
        """Retrieve a single record by its ID."""
        found = self.select_where(TransactionFilter.by_id(transaction_id))
        return found[0] if found else None


class AccountStoreInterface(ABC):
    """Abstract interface for account storage."""

    @abstractmethod
    def list_accounts(
        self,
        type: Optional[AccountType] = None,
        is_active: Optional[bool] = None,
    ) -> list[Account]:
        """List accounts ordered by name."""
        pass

    @abstractmethod
    def get_account(self, account_id: UUID) -> Optional[Account]:
        pass

    @abstractmethod
    def save_account(self, account: Account) -> Account:
        pass

    @abstractmethod
    def update_account(self, account_id: UUID, changes: dict[str, Any]) -> Account:
        """
        Raises:
            NotFoundError: If the account doesn't exist
        """
        pass

    @abstractmethod
    def delete_account(self, account_id: UUID) -> bool:
        """
        Delete an account. Transactions referencing it are left alone.

        Returns:
            True if an account was removed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: AuditEntityType,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, in chronological order.
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


__all__ = [
    "AccountStoreInterface",
    "AuditStorageInterface",
    "ConnectionError",
    "NotFoundError",
    "PersistenceError",
    "TransactionStoreInterface",
]
