"""Shared fixtures: in-memory stores, no external services."""

from datetime import date
from uuid import uuid4

import pytest

from fintrack.audit import AuditLogger
from fintrack.config import get_settings
from fintrack.models import Account, AccountType, Category, TransactionType
from fintrack.services.storage import (
    InMemoryAccountStore,
    InMemoryAuditStorage,
    InMemoryTransactionStore,
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Every test starts from default settings."""
    for name in ("STORAGE_BACKEND", "MIN_INSTALLMENTS", "MAX_INSTALLMENTS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    return InMemoryTransactionStore()


@pytest.fixture
def account_store():
    return InMemoryAccountStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def credit_card():
    return Account(
        name="Nubank",
        type=AccountType.CREDIT_CARD,
        limit_cents=100000,
    )


@pytest.fixture
def expense_category():
    return Category(name="Mercado", type=TransactionType.EXPENSE)


@pytest.fixture
def intent_data():
    """A valid single expense as the form would submit it."""
    return {
        "type": "expense",
        "amount_cents": 10000,
        "date": "2024-01-31",
        "description": "Notebook",
        "account_id": str(uuid4()),
    }


@pytest.fixture
def today():
    return date(2024, 3, 15)
