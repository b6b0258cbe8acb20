"""Pick the record store implementation from settings."""

from typing import NamedTuple, Optional

import structlog

from fintrack.config import Settings, get_settings
from fintrack.services.storage.interface import (
    AccountStoreInterface,
    AuditStorageInterface,
    TransactionStoreInterface,
)
from fintrack.services.storage.memory import (
    InMemoryAccountStore,
    InMemoryAuditStorage,
    InMemoryTransactionStore,
)

logger = structlog.get_logger(__name__)


class Stores(NamedTuple):
    transactions: TransactionStoreInterface
    accounts: AccountStoreInterface
    audit: AuditStorageInterface


def build_stores(settings: Optional[Settings] = None) -> Stores:
    """Build the configured backend; one shared client for Google Sheets."""
    settings = settings or get_settings()
    backend = settings.app.storage_backend

    if backend == "google_sheets":
        # Imported lazily so the memory backend needs no Google config
        from fintrack.services.storage.google_sheets import (
            GoogleSheetsAccountStore,
            GoogleSheetsAuditStorage,
            GoogleSheetsClient,
            GoogleSheetsTransactionStore,
        )

        client = GoogleSheetsClient(settings.google_sheets)
        stores = Stores(
            transactions=GoogleSheetsTransactionStore(client),
            accounts=GoogleSheetsAccountStore(client),
            audit=GoogleSheetsAuditStorage(client),
        )
    else:
        stores = Stores(
            transactions=InMemoryTransactionStore(),
            accounts=InMemoryAccountStore(),
            audit=InMemoryAuditStorage(),
        )

    logger.info("stores_built", backend=backend)
    return stores
