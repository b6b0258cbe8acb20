"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker core.
All data flowing through the system must conform to these schemas.
"""

from fintrack.models.transaction import (
    ApplyMode,
    Category,
    CloneRequest,
    DeleteRequest,
    RecurrenceType,
    SeriesMeta,
    SeriesType,
    Transaction,
    TransactionIntent,
    TransactionPatch,
    TransactionType,
    UpdateRequest,
)
from fintrack.models.account import (
    ACCOUNT_TYPE_LABELS,
    Account,
    AccountPatch,
    AccountType,
    get_account_type_label,
    is_credit_card,
)
from fintrack.models.filters import TransactionFilter
from fintrack.models.validation import ValidationIssue, ValidationResult
from fintrack.models.audit import (
    AuditAction,
    AuditEntityType,
    AuditEvent,
    AuditEventBuilder,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "ApplyMode",
    "Category",
    "CloneRequest",
    "DeleteRequest",
    "RecurrenceType",
    "SeriesMeta",
    "SeriesType",
    "Transaction",
    "TransactionFilter",
    "TransactionIntent",
    "TransactionPatch",
    "TransactionType",
    "UpdateRequest",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Account models
    "ACCOUNT_TYPE_LABELS",
    "Account",
    "AccountPatch",
    "AccountType",
    "get_account_type_label",
    "is_credit_card",
    # Audit models
    "AuditAction",
    "AuditEntityType",
    "AuditEvent",
    "AuditEventBuilder",
    "AuditSeverity",
]
