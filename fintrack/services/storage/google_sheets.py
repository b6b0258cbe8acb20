"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is kept as a storage backend because:
1. Users can view their transactions directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- A batch insert is one append_rows call, so a series lands in one
  request; row deletes are separate calls and are not atomic
- Limited query capabilities (we filter in Python)

Only connection setup and reads are retried. Writes are never retried
here: a retried append after a timeout could duplicate a whole series.
"""

import json
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import retry, stop_after_attempt, wait_exponential

from fintrack.config import GoogleSheetsSettings, get_settings
from fintrack.models.account import Account, AccountType
from fintrack.models.audit import (
    AuditAction,
    AuditEntityType,
    AuditEvent,
    AuditSeverity,
)
from fintrack.models.filters import TransactionFilter
from fintrack.models.transaction import SeriesType, Transaction, TransactionType
from fintrack.services.storage.interface import (
    AccountStoreInterface,
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    PersistenceError,
    TransactionStoreInterface,
)
from fintrack.services.storage.memory import apply_changes, sort_transactions

logger = structlog.get_logger(__name__)


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "created_at",
    "type",
    "amount_cents",
    "date",
    "description",
    "notes",
    "payment_method",
    "account_id",
    "category_id",
    "is_paid",
    "series_type",
    "series_id",
    "series_sequence",
    "series_total",
    "series_amount_total_cents",
]

# Column mappings for Accounts sheet
ACCOUNT_COLUMNS = [
    "id",
    "created_at",
    "name",
    "type",
    "limit_cents",
    "balance_cents",
    "is_active",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "entity_type",
    "entity_id",
    "action",
    "severity",
    "correlation_id",
    "message",
    "changes_json",
    "meta_json",
]

_read_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _cell(row: list, index: int) -> str:
    """Handle missing trailing columns gracefully."""
    try:
        return row[index] or ""
    except IndexError:
        return ""


def _opt_int(value: str) -> Optional[int]:
    return int(value) if value else None


def _opt_uuid(value: str) -> Optional[UUID]:
    return UUID(value) if value else None


def _row_range(row_index: int, width: int) -> str:
    return f"A{row_index}:{rowcol_to_a1(row_index, width)}"


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @_read_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, rows=2000
        )

    def get_accounts_sheet(self) -> gspread.Worksheet:
        """Get or create the Accounts worksheet."""
        return self._get_or_create(
            self._settings.accounts_sheet_name, ACCOUNT_COLUMNS, rows=200
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsTransactionStore(TransactionStoreInterface):
    """
    Google Sheets implementation of the transaction store.

    One transaction per row. Row 1 is the header, so the first record
    lives on row 2.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, txn: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            str(txn.id),
            txn.created_at.isoformat(),
            txn.type.value,
            str(txn.amount_cents),
            txn.date.isoformat(),
            txn.description,
            txn.notes or "",
            txn.payment_method or "",
            str(txn.account_id) if txn.account_id else "",
            str(txn.category_id) if txn.category_id else "",
            str(txn.is_paid),
            txn.series_type.value,
            str(txn.series_id) if txn.series_id else "",
            str(txn.series_sequence),
            str(txn.series_total),
            str(txn.series_amount_total_cents),
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        """Convert a spreadsheet row to a Transaction."""
        return Transaction(
            id=UUID(_cell(row, 0)),
            created_at=datetime.fromisoformat(_cell(row, 1)),
            type=TransactionType(_cell(row, 2)),
            amount_cents=int(_cell(row, 3)),
            date=date.fromisoformat(_cell(row, 4)),
            description=_cell(row, 5),
            notes=_cell(row, 6) or None,
            payment_method=_cell(row, 7) or None,
            account_id=_opt_uuid(_cell(row, 8)),
            category_id=_opt_uuid(_cell(row, 9)),
            is_paid=_cell(row, 10).lower() == "true",
            series_type=SeriesType(_cell(row, 11) or "single"),
            series_id=_opt_uuid(_cell(row, 12)),
            series_sequence=int(_cell(row, 13) or 1),
            series_total=int(_cell(row, 14) or 1),
            series_amount_total_cents=_opt_int(_cell(row, 15)),
        )

    @_read_retry
    def _read_rows(self) -> list[list]:
        sheet = self._client.get_transactions_sheet()
        return sheet.get_all_values()

    def _load(self) -> list[tuple[int, Transaction]]:
        """All parseable records with their 1-based sheet row number."""
        try:
            all_rows = self._read_rows()
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to read transactions: {e}")

        loaded = []
        for row_index, row in enumerate(all_rows[1:], start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                loaded.append((row_index, self._row_to_transaction(row)))
            except Exception as e:
                logger.warning("sheet_row_skipped", row=row_index, error=str(e))
        return loaded

    def insert_batch(self, records: list[Transaction]) -> list[Transaction]:
        """Append the whole batch in a single API call."""
        if not records:
            return []
        try:
            sheet = self._client.get_transactions_sheet()
            rows = [self._transaction_to_row(txn) for txn in records]
            sheet.append_rows(rows, value_input_option="RAW")
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to insert transactions: {e}")

        logger.debug("store_batch_inserted", count=len(records))
        return list(records)

    def update_where(
        self,
        filter: TransactionFilter,
        changes: dict[str, Any],
    ) -> list[Transaction]:
        if filter.is_empty:
            raise PersistenceError("Refusing to update without a filter")

        targets = [(idx, txn) for idx, txn in self._load() if filter.matches(txn)]
        updated = [(idx, apply_changes(txn, changes)) for idx, txn in targets]
        if not updated:
            return []

        width = len(TRANSACTION_COLUMNS)
        data = [
            {"range": _row_range(idx, width), "values": [self._transaction_to_row(txn)]}
            for idx, txn in updated
        ]
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.batch_update(data, value_input_option="RAW")
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to update transactions: {e}")

        logger.debug("store_records_updated", count=len(updated), fields=sorted(changes))
        return sort_transactions([txn for _, txn in updated])

    def delete_where(self, filter: TransactionFilter) -> int:
        if filter.is_empty:
            raise PersistenceError("Refusing to delete without a filter")

        doomed = [idx for idx, txn in self._load() if filter.matches(txn)]
        try:
            sheet = self._client.get_transactions_sheet()
            # Bottom-up so earlier row numbers stay valid
            for idx in sorted(doomed, reverse=True):
                sheet.delete_rows(idx)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to delete transactions: {e}")

        logger.debug("store_records_deleted", count=len(doomed))
        return len(doomed)

    def select_where(
        self,
        filter: TransactionFilter,
        order_by: str = "date",
        descending: bool = False,
    ) -> list[Transaction]:
        found = [txn for _, txn in self._load() if filter.matches(txn)]
        return sort_transactions(found, order_by, descending)


class GoogleSheetsAccountStore(AccountStoreInterface):
    """Google Sheets implementation of account storage."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _account_to_row(self, account: Account) -> list:
        return [
            str(account.id),
            account.created_at.isoformat(),
            account.name,
            account.type.value,
            "" if account.limit_cents is None else str(account.limit_cents),
            "" if account.balance_cents is None else str(account.balance_cents),
            str(account.is_active),
        ]

    def _row_to_account(self, row: list) -> Account:
        return Account(
            id=UUID(_cell(row, 0)),
            created_at=datetime.fromisoformat(_cell(row, 1)),
            name=_cell(row, 2),
            type=AccountType(_cell(row, 3)),
            limit_cents=_opt_int(_cell(row, 4)),
            balance_cents=_opt_int(_cell(row, 5)),
            is_active=_cell(row, 6).lower() != "false",
        )

    @_read_retry
    def _read_rows(self) -> list[list]:
        sheet = self._client.get_accounts_sheet()
        return sheet.get_all_values()

    def _load(self) -> list[tuple[int, Account]]:
        try:
            all_rows = self._read_rows()
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to read accounts: {e}")

        loaded = []
        for row_index, row in enumerate(all_rows[1:], start=2):
            if not row or not row[0]:
                continue
            try:
                loaded.append((row_index, self._row_to_account(row)))
            except Exception as e:
                logger.warning("sheet_row_skipped", row=row_index, error=str(e))
        return loaded

    def list_accounts(
        self,
        type: Optional[AccountType] = None,
        is_active: Optional[bool] = None,
    ) -> list[Account]:
        accounts = [
            account for _, account in self._load()
            if (type is None or account.type == type)
            and (is_active is None or account.is_active == is_active)
        ]
        accounts.sort(key=lambda account: account.name.lower())
        return accounts

    def get_account(self, account_id: UUID) -> Optional[Account]:
        for _, account in self._load():
            if account.id == account_id:
                return account
        return None

    def save_account(self, account: Account) -> Account:
        try:
            sheet = self._client.get_accounts_sheet()
            sheet.append_row(self._account_to_row(account), value_input_option="RAW")
        except Exception as e:
            raise PersistenceError(f"Failed to save account: {e}")
        return account

    def update_account(self, account_id: UUID, changes: dict[str, Any]) -> Account:
        for row_index, account in self._load():
            if account.id != account_id:
                continue
            try:
                updated = Account.model_validate({**account.model_dump(), **changes})
            except Exception as e:
                raise PersistenceError(f"Update would leave account {account_id} invalid: {e}")
            try:
                sheet = self._client.get_accounts_sheet()
                sheet.batch_update(
                    [{
                        "range": _row_range(row_index, len(ACCOUNT_COLUMNS)),
                        "values": [self._account_to_row(updated)],
                    }],
                    value_input_option="RAW",
                )
            except Exception as e:
                raise PersistenceError(f"Failed to update account: {e}")
            return updated

        raise NotFoundError(f"Account not found: {account_id}")

    def delete_account(self, account_id: UUID) -> bool:
        for row_index, account in self._load():
            if account.id == account_id:
                try:
                    self._client.get_accounts_sheet().delete_rows(row_index)
                except Exception as e:
                    raise PersistenceError(f"Failed to delete account: {e}")
                return True
        return False


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            entity_type=AuditEntityType(_cell(row, 2)),
            entity_id=UUID(_cell(row, 3)),
            action=AuditAction(_cell(row, 4)),
            severity=AuditSeverity(_cell(row, 5) or "info"),
            correlation_id=_opt_uuid(_cell(row, 6)),
            message=_cell(row, 7),
            changes=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            meta=json.loads(_cell(row, 9)) if _cell(row, 9) else {},
        )

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise PersistenceError(f"Failed to write audit event: {e}")

    @_read_retry
    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception as e:
                logger.warning("audit_row_skipped", error=str(e))
        return events

    def get_events_by_entity(
        self,
        entity_type: AuditEntityType,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        try:
            events = [
                event for event in self._read_events()
                if event.entity_type == entity_type and event.entity_id == entity_id
            ]
        except Exception as e:
            raise PersistenceError(f"Failed to get audit events: {e}")

        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._read_events()
        except Exception as e:
            raise PersistenceError(f"Failed to get audit events: {e}")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
