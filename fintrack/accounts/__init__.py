"""Account exposure package."""

from fintrack.accounts.exposure import (
    AccountExposure,
    AccountsOverview,
    ExposureAggregator,
    InstallmentSummary,
    compute_account_exposure,
    compute_accounts_overview,
    describe_balance,
    summarize_installments,
)

__all__ = [
    "AccountExposure",
    "AccountsOverview",
    "ExposureAggregator",
    "InstallmentSummary",
    "compute_account_exposure",
    "compute_accounts_overview",
    "describe_balance",
    "summarize_installments",
]
