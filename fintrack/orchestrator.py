"""
Main Orchestrator for fintrack

This module ties together all the components and defines the
end-to-end flows that the application layer calls:
1. Transactions (intent → validate → expand → persist, and scoped edits)
2. Accounts (account CRUD and credit exposure)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the store without passing validation
- Every mutation carries one correlation id through logs and audit
- Derived figures (exposure, totals) are recomputed, never stored

The flows hold no state of their own beyond their collaborators, so a
caller may build them once and share them.
"""

from datetime import date
from typing import Any, Optional, Union
from uuid import UUID

import structlog

from fintrack.accounts import AccountExposure, AccountsOverview, ExposureAggregator
from fintrack.audit import AuditLogger, configure_logging, create_correlation_id
from fintrack.config import Settings, get_settings
from fintrack.errors import NotFoundError, ValidationError
from fintrack.models.account import Account, AccountPatch, AccountType
from fintrack.models.audit import AuditAction
from fintrack.models.transaction import (
    ApplyMode,
    Category,
    CloneRequest,
    DeleteRequest,
    Transaction,
    TransactionIntent,
    UpdateRequest,
)
from fintrack.models.validation import ValidationResult
from fintrack.queries import (
    PeriodOption,
    QueryExecutor,
    TransactionQuery,
    TransactionSummary,
)
from fintrack.queries.executor import Period
from fintrack.series import SeriesGenerator, SeriesMutator
from fintrack.services.storage import (
    AccountStoreInterface,
    TransactionStoreInterface,
    build_stores,
)
from fintrack.validation import TransactionValidator, parse_model

logger = structlog.get_logger(__name__)


class TransactionFlow:
    """
    Orchestrates everything that creates, changes or reads transactions.

    Create flow:
    1. Validate → two-stage validation (nothing persisted on failure)
    2. Expand   → one record, or a full installment/monthly series
    3. Persist  → a single batch insert
    4. Audit    → one "created" event for the batch

    Edits and deletes go through the series mutator, which decides the
    scope (this record, or this record and every later occurrence).
    """

    def __init__(
        self,
        store: TransactionStoreInterface,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._generator = SeriesGenerator(store, self._validator, self._audit_logger)
        self._mutator = SeriesMutator(store, self._audit_logger)
        self._query_executor = QueryExecutor(store)

    def check(
        self,
        data: Union[TransactionIntent, dict[str, Any]],
        category: Optional[Category] = None,
    ) -> ValidationResult:
        """Validate a form submission without touching the store."""
        _, result = self._validator.validate(data, category)
        return result

    def preview(
        self,
        data: Union[TransactionIntent, dict[str, Any]],
        category: Optional[Category] = None,
    ) -> list[Transaction]:
        """Records that create() would insert."""
        return self._generator.preview(data, category)

    def create(
        self,
        data: Union[TransactionIntent, dict[str, Any]],
        category: Optional[Category] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Create a transaction, or every occurrence of a series.

        Returns:
            The inserted records ordered by series_sequence

        Raises:
            ValidationError: Invalid intent
            PersistenceError: The batch insert failed
        """
        correlation_id = correlation_id or create_correlation_id()
        return self._generator.generate(data, category, correlation_id)

    def update(
        self,
        request: Union[UpdateRequest, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        correlation_id = correlation_id or create_correlation_id()
        return self._mutator.update(request, correlation_id)

    def set_paid(
        self,
        transaction_id: UUID,
        is_paid: bool,
        apply_mode: ApplyMode = ApplyMode.SINGLE,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        correlation_id = correlation_id or create_correlation_id()
        return self._mutator.set_paid(transaction_id, is_paid, apply_mode, correlation_id)

    def delete(
        self,
        request: Union[DeleteRequest, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> int:
        correlation_id = correlation_id or create_correlation_id()
        return self._mutator.delete(request, correlation_id)

    def clone(
        self,
        request: Union[CloneRequest, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        correlation_id = correlation_id or create_correlation_id()
        return self._mutator.clone(request, correlation_id)

    def list_transactions(
        self,
        query: Optional[Union[TransactionQuery, dict[str, Any]]] = None,
    ) -> list[Transaction]:
        """Transactions matching query, newest first."""
        if query is not None:
            query = parse_model(TransactionQuery, query)
        return self._query_executor.list_transactions(query)

    def dashboard(
        self,
        option: PeriodOption = PeriodOption.CURRENT,
        today: Optional[date] = None,
        custom_from: Optional[date] = None,
        custom_to: Optional[date] = None,
    ) -> tuple[Period, TransactionSummary]:
        """Totals and recent records for a dashboard period."""
        return self._query_executor.summarize_period(
            option, today or date.today(), custom_from, custom_to
        )


class AccountFlow:
    """
    Orchestrates account maintenance and the derived credit figures.

    Deleting an account never touches its transactions; they simply stop
    contributing to any exposure.
    """

    def __init__(
        self,
        account_store: AccountStoreInterface,
        transaction_store: TransactionStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._accounts = account_store
        self._aggregator = ExposureAggregator(transaction_store)
        self._audit_logger = audit_logger or AuditLogger()

    def list_accounts(
        self,
        type: Optional[AccountType] = None,
        is_active: Optional[bool] = None,
    ) -> list[Account]:
        return self._accounts.list_accounts(type=type, is_active=is_active)

    def get_account(self, account_id: UUID) -> Account:
        account = self._accounts.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")
        return account

    def create_account(
        self,
        data: Union[Account, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        correlation_id = correlation_id or create_correlation_id()
        account = self._accounts.save_account(parse_model(Account, data))

        logger.info("account_created", account_id=str(account.id), type=account.type.value)
        self._audit_logger.log_account_changed(
            account_id=account.id,
            action=AuditAction.CREATED,
            name=account.name,
            correlation_id=correlation_id,
        )
        return account

    def update_account(
        self,
        account_id: UUID,
        patch: Union[AccountPatch, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Raises:
            ValidationError: Empty or invalid patch
            NotFoundError: Account doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()
        changes = parse_model(AccountPatch, patch).store_changes()
        if not changes:
            raise ValidationError("Nothing to update")

        account = self._accounts.update_account(account_id, changes)

        logger.info("account_updated", account_id=str(account_id), fields=sorted(changes))
        self._audit_logger.log_account_changed(
            account_id=account_id,
            action=AuditAction.UPDATED,
            name=account.name,
            changes=changes,
            correlation_id=correlation_id,
        )
        return account

    def delete_account(
        self,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        account = self.get_account(account_id)
        self._accounts.delete_account(account_id)

        logger.info("account_deleted", account_id=str(account_id))
        self._audit_logger.log_account_changed(
            account_id=account_id,
            action=AuditAction.DELETED,
            name=account.name,
            correlation_id=correlation_id,
        )

    def exposure(self, account_id: UUID, cutoff: Optional[date] = None) -> AccountExposure:
        return self._aggregator.exposure_for(self.get_account(account_id), cutoff)

    def overview(self, cutoff: Optional[date] = None) -> AccountsOverview:
        """Exposure of every active account plus the dashboard totals."""
        accounts = self._accounts.list_accounts(is_active=True)
        return self._aggregator.overview(accounts, cutoff)


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[TransactionFlow, AccountFlow]:
    """
    Factory function to create all application components.

    The storage backend comes from settings; both flows share the same
    stores and the same audit logger.

    Returns:
        (transaction_flow, account_flow)
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    stores = build_stores(settings)
    audit_logger = AuditLogger(stores.audit)

    transaction_flow = TransactionFlow(
        store=stores.transactions,
        audit_logger=audit_logger,
    )
    account_flow = AccountFlow(
        account_store=stores.accounts,
        transaction_store=stores.transactions,
        audit_logger=audit_logger,
    )
    return transaction_flow, account_flow
