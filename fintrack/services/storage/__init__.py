"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Ships an in-memory backend and a Google Sheets backend; designed to be swappable.
"""

from fintrack.services.storage.interface import (
    AccountStoreInterface,
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    PersistenceError,
    TransactionStoreInterface,
)
from fintrack.services.storage.memory import (
    InMemoryAccountStore,
    InMemoryAuditStorage,
    InMemoryTransactionStore,
)
from fintrack.services.storage.factory import Stores, build_stores

__all__ = [
    # Interfaces
    "AccountStoreInterface",
    "AuditStorageInterface",
    "TransactionStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "PersistenceError",
    # In-memory implementation
    "InMemoryAccountStore",
    "InMemoryAuditStorage",
    "InMemoryTransactionStore",
    # Factory
    "Stores",
    "build_stores",
]
