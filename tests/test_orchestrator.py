"""Integration tests for the flows, with in-memory stores."""

from datetime import date
from uuid import uuid4

import pytest

from fintrack.errors import NotFoundError, ValidationError
from fintrack.models import AccountType, ApplyMode, AuditAction, AuditEntityType
from fintrack.orchestrator import AccountFlow, TransactionFlow, create_app_components
from fintrack.queries import PeriodOption
from fintrack.services.storage import InMemoryTransactionStore


@pytest.fixture
def transaction_flow(store, audit_logger):
    return TransactionFlow(store, audit_logger=audit_logger)


@pytest.fixture
def account_flow(account_store, store, audit_logger):
    return AccountFlow(account_store, store, audit_logger=audit_logger)


class TestTransactionFlow:
    """Tests for the transaction flow end to end."""

    def test_create_then_edit_rest_of_series(self, transaction_flow, intent_data):
        """Test create, scoped update and listing work together."""
        intent_data.update(recurrence_type="installment", installments_count=6)
        records = transaction_flow.create(intent_data)

        transaction_flow.update({
            "id": records[2].id,
            "apply_mode": "series_from_here",
            "changes": {"description": "Notebook (renegociado)"},
        })

        listed = transaction_flow.list_transactions({"search": "renegociado"})
        assert sorted(t.series_sequence for t in listed) == [3, 4, 5, 6]

    def test_check_does_not_raise(self, transaction_flow, intent_data):
        """Test check returns issues instead of raising."""
        intent_data.update(recurrence_type="installment", installments_count=40)
        result = transaction_flow.check(intent_data)
        assert not result.is_valid

    def test_invalid_create_raises(self, transaction_flow, intent_data, store):
        """Test create stops at validation."""
        intent_data["description"] = "x"
        with pytest.raises(ValidationError):
            transaction_flow.create(intent_data)
        assert len(store) == 0

    def test_correlation_id_is_shared(self, transaction_flow, intent_data, audit_storage):
        """Test the caller's correlation id reaches the audit trail."""
        correlation_id = uuid4()
        records = transaction_flow.create(intent_data, correlation_id=correlation_id)
        transaction_flow.set_paid(records[0].id, True, correlation_id=correlation_id)

        events = audit_storage.get_events_by_entity(AuditEntityType.TRANSACTION, records[0].id)
        assert [e.action for e in events] == [AuditAction.CREATED, AuditAction.UPDATED]
        assert {e.correlation_id for e in events} == {correlation_id}

    def test_clone_and_delete(self, transaction_flow, intent_data, store):
        """Test clone adds a record and a scoped delete removes the tail."""
        intent_data.update(recurrence_type="monthly")
        records = transaction_flow.create(intent_data)
        transaction_flow.clone({"source_id": records[0].id, "date": "2025-06-01"})
        assert len(store) == 13

        deleted = transaction_flow.delete({"id": records[6].id, "mode": ApplyMode.SERIES_FROM_HERE})
        assert deleted == 6
        assert len(store) == 7

    def test_dashboard(self, transaction_flow, intent_data):
        """Test the dashboard summary over a custom period."""
        intent_data.update(recurrence_type="monthly", amount_cents=5000, date="2024-01-10")
        transaction_flow.create(intent_data)
        period, summary = transaction_flow.dashboard(
            PeriodOption.CUSTOM,
            today=date(2024, 6, 1),
            custom_from=date(2024, 1, 1),
            custom_to=date(2024, 3, 31),
        )
        assert summary.expense_cents == 15000
        assert len(summary.recent) == 3
        assert summary.recent[0].date == date(2024, 3, 10)


class TestAccountFlow:
    """Tests for account maintenance and exposure."""

    def test_create_update_delete_audited(self, account_flow, audit_storage):
        """Test each account change produces an audit event."""
        account = account_flow.create_account({"name": "Nubank", "type": "credit_card", "limit_cents": 500000})
        account_flow.update_account(account.id, {"limit_cents": 800000})
        account_flow.delete_account(account.id)

        events = audit_storage.get_events_by_entity(AuditEntityType.ACCOUNT, account.id)
        assert [e.action for e in events] == [AuditAction.CREATED, AuditAction.UPDATED, AuditAction.DELETED]
        assert events[1].changes == {"limit_cents": 800000}

    def test_empty_account_patch_rejected(self, account_flow):
        """Test an account update with nothing in it."""
        account = account_flow.create_account({"name": "Carteira", "type": "cash"})
        with pytest.raises(ValidationError):
            account_flow.update_account(account.id, {})

    def test_missing_account(self, account_flow):
        """Test operations on an unknown account."""
        with pytest.raises(NotFoundError):
            account_flow.update_account(uuid4(), {"name": "X"})
        with pytest.raises(NotFoundError):
            account_flow.delete_account(uuid4())

    def test_exposure_follows_transactions(self, account_flow, transaction_flow, intent_data):
        """Test a card purchase in 10x lowers the available limit by the total."""
        card = account_flow.create_account({"name": "Visa", "type": "credit_card", "limit_cents": 100000})
        intent_data.update(
            account_id=str(card.id),
            amount_cents=30000,
            date="2024-03-05",
            recurrence_type="installment",
            installments_count=10,
        )
        transaction_flow.create(intent_data)

        exposure = account_flow.exposure(card.id, cutoff=date(2024, 3, 31))
        assert exposure.invoice_amount_cents == 3000
        assert exposure.future_amount_cents == 27000
        assert exposure.remaining_installments == 9
        assert exposure.available_cents == 70000

    def test_overview_skips_inactive_accounts(self, account_flow):
        """Test inactive accounts are left out of the totals."""
        account_flow.create_account({"name": "Ativo", "type": "credit_card", "limit_cents": 1000})
        account_flow.create_account({"name": "Antigo", "type": "credit_card", "limit_cents": 9000, "is_active": False})
        overview = account_flow.overview()
        assert overview.credit_limit_total_cents == 1000

    def test_list_accounts_by_type(self, account_flow):
        """Test filtering accounts by type, ordered by name."""
        account_flow.create_account({"name": "Pix Itaú", "type": "pix"})
        account_flow.create_account({"name": "Cartão B", "type": "credit_card"})
        account_flow.create_account({"name": "Cartão A", "type": "credit_card"})
        names = [a.name for a in account_flow.list_accounts(type=AccountType.CREDIT_CARD)]
        assert names == ["Cartão A", "Cartão B"]


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_memory_backend_by_default(self):
        """Test the default backend needs no external configuration."""
        transaction_flow, account_flow = create_app_components()
        assert isinstance(transaction_flow, TransactionFlow)
        assert isinstance(account_flow, AccountFlow)
        assert isinstance(transaction_flow._query_executor._store, InMemoryTransactionStore)
