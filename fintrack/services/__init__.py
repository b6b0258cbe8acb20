"""Services package."""

from fintrack.services.storage import (
    AccountStoreInterface,
    AuditStorageInterface,
    ConnectionError,
    InMemoryAccountStore,
    InMemoryAuditStorage,
    InMemoryTransactionStore,
    NotFoundError,
    PersistenceError,
    Stores,
    TransactionStoreInterface,
    build_stores,
)

__all__ = [
    "AccountStoreInterface",
    "AuditStorageInterface",
    "ConnectionError",
    "InMemoryAccountStore",
    "InMemoryAuditStorage",
    "InMemoryTransactionStore",
    "NotFoundError",
    "PersistenceError",
    "Stores",
    "TransactionStoreInterface",
    "build_stores",
]
