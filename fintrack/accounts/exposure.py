"""
Account Exposure Aggregator

Derives, from the transaction set and account metadata, how much credit
is still available on each card and what balance other accounts show.

For a credit card:
    invoice   = unpaid expenses dated on or before the cutoff
    future    = unpaid expenses dated strictly after the cutoff
    available = limit - (invoice + future)

Without a cutoff every unpaid expense counts as invoice and nothing is
future. "Remaining installments" counts only future records of
installment series; monthly records are open-ended recurrence, not a
finite remaining balance.

DESIGN DECISION: Everything here is a pure function of its inputs and
is recomputed on every call. There is no stored running balance to
patch, so a stale figure can only come from a stale input.
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from fintrack.models.account import Account, AccountType
from fintrack.models.filters import TransactionFilter
from fintrack.models.transaction import SeriesType, Transaction, TransactionType
from fintrack.services.storage import TransactionStoreInterface
from fintrack.utils.currency import format_cents_to_brl

logger = structlog.get_logger(__name__)


class InstallmentSummary(BaseModel):
    """Future unpaid obligations on one account."""

    account_id: UUID
    future_amount_cents: int = 0
    remaining_installments: int = 0


class AccountExposure(BaseModel):
    """Derived figures for one account."""

    account_id: UUID
    account_type: AccountType
    limit_cents: Optional[int] = None
    balance_cents: Optional[int] = None
    invoice_amount_cents: int = 0
    future_amount_cents: int = 0
    remaining_installments: int = 0
    available_cents: Optional[int] = Field(
        default=None,
        description="limit - obligations; negative means over limit"
    )

    @property
    def is_credit_card(self) -> bool:
        return self.account_type == AccountType.CREDIT_CARD

    @property
    def committed_cents(self) -> int:
        return self.invoice_amount_cents + self.future_amount_cents

    @property
    def display_available_cents(self) -> Optional[int]:
        """Available limit clamped at zero for display."""
        if self.available_cents is None:
            return None
        return max(self.available_cents, 0)

    @property
    def is_over_limit(self) -> bool:
        return self.available_cents is not None and self.available_cents < 0


class AccountsOverview(BaseModel):
    """Totals across all accounts, as shown on the dashboard card."""

    exposures: list[AccountExposure] = Field(default_factory=list)
    credit_limit_total_cents: int = 0
    credit_available_total_cents: int = 0
    other_balances_total_cents: int = 0


def _unpaid_expenses(
    transactions: Iterable[Transaction],
    account_ids: set[UUID],
) -> list[Transaction]:
    return [
        txn for txn in transactions
        if txn.account_id in account_ids
        and txn.type == TransactionType.EXPENSE
        and not txn.is_paid
    ]


def summarize_installments(
    transactions: Iterable[Transaction],
    account_ids: list[UUID],
    cutoff: Optional[date] = None,
) -> list[InstallmentSummary]:
    """
    Future unpaid obligations per account.

    Records dated strictly after cutoff count (all of them when there is
    no cutoff). Accounts without records still get a zero entry, and
    the output follows the order of account_ids.
    """
    summaries = {account_id: InstallmentSummary(account_id=account_id) for account_id in account_ids}

    for txn in _unpaid_expenses(transactions, set(account_ids)):
        if cutoff is not None and txn.date <= cutoff:
            continue
        summary = summaries[txn.account_id]
        summary.future_amount_cents += txn.amount_cents
        if txn.series_type == SeriesType.INSTALLMENT:
            summary.remaining_installments += 1

    return [summaries[account_id] for account_id in account_ids]


def compute_account_exposure(
    account: Account,
    transactions: Iterable[Transaction],
    cutoff: Optional[date] = None,
) -> AccountExposure:
    """
    Exposure of one account.

    Non-credit accounts surface their declared balance as-is. A credit
    card without a limit reports its obligations but no available figure.
    """
    if not account.is_credit_card:
        return AccountExposure(
            account_id=account.id,
            account_type=account.type,
            limit_cents=account.limit_cents,
            balance_cents=account.balance_cents,
        )

    invoice = 0
    future = 0
    remaining = 0
    for txn in _unpaid_expenses(transactions, {account.id}):
        if cutoff is None or txn.date <= cutoff:
            invoice += txn.amount_cents
        else:
            future += txn.amount_cents
            if txn.series_type == SeriesType.INSTALLMENT:
                remaining += 1

    available = None
    if account.limit_cents is not None:
        available = account.limit_cents - (invoice + future)

    return AccountExposure(
        account_id=account.id,
        account_type=account.type,
        limit_cents=account.limit_cents,
        balance_cents=account.balance_cents,
        invoice_amount_cents=invoice,
        future_amount_cents=future,
        remaining_installments=remaining,
        available_cents=available,
    )


def compute_accounts_overview(
    accounts: list[Account],
    transactions: Iterable[Transaction],
    cutoff: Optional[date] = None,
) -> AccountsOverview:
    """Per-account exposure plus the dashboard totals."""
    transactions = list(transactions)
    exposures = [compute_account_exposure(account, transactions, cutoff) for account in accounts]

    credit = [e for e in exposures if e.is_credit_card]
    return AccountsOverview(
        exposures=exposures,
        credit_limit_total_cents=sum(e.limit_cents or 0 for e in credit),
        credit_available_total_cents=sum(e.display_available_cents or 0 for e in credit),
        other_balances_total_cents=sum(
            e.balance_cents or 0 for e in exposures if not e.is_credit_card
        ),
    )


def describe_balance(exposure: AccountExposure) -> str:
    """One-line hint shown under each account."""
    if exposure.is_credit_card:
        if exposure.available_cents is None:
            return "Limite não informado"
        return f"Limite disponível: {format_cents_to_brl(exposure.display_available_cents)}"

    if exposure.balance_cents is not None:
        return f"Saldo estimado: {format_cents_to_brl(exposure.balance_cents)}"

    return "Saldo não informado"


class ExposureAggregator:
    """
    Reads the working set from the store and computes exposures.

    Every call goes back to the store; caching, if wanted, belongs to
    the caller, who also knows when a mutation invalidated it.
    """

    def __init__(self, store: TransactionStoreInterface):
        self._store = store

    def fetch_working_set(self, account_ids: list[UUID]) -> list[Transaction]:
        """Unpaid expenses of the given accounts."""
        if not account_ids:
            return []
        return self._store.select_where(TransactionFilter(
            account_ids=list(account_ids),
            type=TransactionType.EXPENSE,
            is_paid=False,
        ))

    def exposure_for(self, account: Account, cutoff: Optional[date] = None) -> AccountExposure:
        exposure = compute_account_exposure(
            account, self.fetch_working_set([account.id]), cutoff
        )
        if exposure.is_over_limit:
            logger.warning(
                "account_over_limit",
                account_id=str(account.id),
                available_cents=exposure.available_cents,
            )
        return exposure

    def overview(self, accounts: list[Account], cutoff: Optional[date] = None) -> AccountsOverview:
        working_set = self.fetch_working_set([account.id for account in accounts])
        return compute_accounts_overview(accounts, working_set, cutoff)

    def installments_summary(
        self,
        account_ids: list[UUID],
        cutoff: Optional[date] = None,
    ) -> list[InstallmentSummary]:
        return summarize_installments(self.fetch_working_set(account_ids), account_ids, cutoff)
