"""Tests for credit card exposure and account balances."""

from datetime import date
from uuid import uuid4

import pytest

from fintrack.accounts import (
    ExposureAggregator,
    compute_account_exposure,
    compute_accounts_overview,
    describe_balance,
    summarize_installments,
)
from fintrack.models import (
    Account,
    AccountType,
    SeriesType,
    Transaction,
    TransactionFilter,
    TransactionType,
)


def _expense(account_id, amount_cents, on, is_paid=False, **overrides):
    data = {
        "type": TransactionType.EXPENSE,
        "amount_cents": amount_cents,
        "date": on,
        "description": "Compra",
        "account_id": account_id,
        "is_paid": is_paid,
    }
    data.update(overrides)
    return Transaction(**data)


def _installment(account_id, amount_cents, on, sequence, total, series_id):
    return _expense(
        account_id, amount_cents, on,
        series_type=SeriesType.INSTALLMENT,
        series_id=series_id,
        series_sequence=sequence,
        series_total=total,
        series_amount_total_cents=amount_cents * total,
    )


class TestComputeAccountExposure:
    """Tests for a single account's exposure."""

    def test_invoice_and_future_split_at_cutoff(self, credit_card):
        """Test limit 1000,00 minus 300,00 invoiced and 100,00 future leaves 600,00."""
        cutoff = date(2024, 3, 31)
        transactions = [
            _expense(credit_card.id, 30000, date(2024, 3, 10)),
            _expense(credit_card.id, 10000, date(2024, 4, 10)),
        ]
        exposure = compute_account_exposure(credit_card, transactions, cutoff)

        assert exposure.invoice_amount_cents == 30000
        assert exposure.future_amount_cents == 10000
        assert exposure.available_cents == 60000
        assert exposure.display_available_cents == 60000

    def test_cutoff_day_counts_as_invoice(self, credit_card):
        """Test a record dated on the cutoff is invoiced, not future."""
        exposure = compute_account_exposure(
            credit_card,
            [_expense(credit_card.id, 500, date(2024, 3, 31))],
            date(2024, 3, 31),
        )
        assert exposure.invoice_amount_cents == 500
        assert exposure.future_amount_cents == 0

    def test_ignores_paid_income_and_other_accounts(self, credit_card):
        """Test only unpaid expenses of this account count."""
        transactions = [
            _expense(credit_card.id, 1000, date(2024, 3, 1), is_paid=True),
            _expense(credit_card.id, 2000, date(2024, 3, 1), type=TransactionType.INCOME),
            _expense(uuid4(), 4000, date(2024, 3, 1)),
            _expense(credit_card.id, 8000, date(2024, 3, 1)),
        ]
        exposure = compute_account_exposure(credit_card, transactions)
        assert exposure.invoice_amount_cents == 8000
        assert exposure.available_cents == 92000

    def test_without_cutoff_everything_is_invoice(self, credit_card):
        """Test no cutoff means nothing is future."""
        transactions = [
            _expense(credit_card.id, 1000, date(2024, 3, 1)),
            _expense(credit_card.id, 2000, date(2030, 1, 1)),
        ]
        exposure = compute_account_exposure(credit_card, transactions)
        assert exposure.invoice_amount_cents == 3000
        assert exposure.future_amount_cents == 0

    def test_over_limit_is_negative_but_displayed_as_zero(self, credit_card):
        """Test available can go negative; the display value floors at zero."""
        exposure = compute_account_exposure(
            credit_card, [_expense(credit_card.id, 150000, date(2024, 3, 1))],
        )
        assert exposure.available_cents == -50000
        assert exposure.display_available_cents == 0
        assert exposure.is_over_limit

    def test_remaining_installments_count_only_future_installments(self, credit_card):
        """Test monthly and single records do not count as installments."""
        series_id = uuid4()
        transactions = [
            _installment(credit_card.id, 1000, date(2024, 3, 5), 1, 3, series_id),
            _installment(credit_card.id, 1000, date(2024, 4, 5), 2, 3, series_id),
            _installment(credit_card.id, 1000, date(2024, 5, 5), 3, 3, series_id),
            _expense(credit_card.id, 700, date(2024, 4, 20)),
        ]
        exposure = compute_account_exposure(credit_card, transactions, date(2024, 3, 31))
        assert exposure.remaining_installments == 2
        assert exposure.future_amount_cents == 2700

    def test_card_without_limit(self):
        """Test a card with no limit has no available figure."""
        card = Account(name="Inter", type=AccountType.CREDIT_CARD)
        exposure = compute_account_exposure(card, [_expense(card.id, 100, date(2024, 1, 1))])
        assert exposure.available_cents is None
        assert exposure.invoice_amount_cents == 100

    def test_non_credit_account_surfaces_balance(self):
        """Test other accounts just show their declared balance."""
        wallet = Account(name="Carteira", type=AccountType.CASH, balance_cents=4200)
        exposure = compute_account_exposure(wallet, [_expense(wallet.id, 100, date(2024, 1, 1))])
        assert exposure.balance_cents == 4200
        assert exposure.available_cents is None
        assert exposure.invoice_amount_cents == 0


class TestSummarizeInstallments:
    """Tests for the per-account future summary."""

    def test_summary_keeps_account_order_and_zero_entries(self):
        """Test accounts without records still appear, in input order."""
        first, second = uuid4(), uuid4()
        series_id = uuid4()
        transactions = [
            _installment(second, 500, date(2024, 5, 1), 2, 2, series_id),
            _expense(second, 300, date(2024, 5, 2)),
        ]
        summaries = summarize_installments(transactions, [first, second], date(2024, 4, 30))

        assert [s.account_id for s in summaries] == [first, second]
        assert summaries[0].future_amount_cents == 0
        assert summaries[1].future_amount_cents == 800
        assert summaries[1].remaining_installments == 1


class TestOverview:
    """Tests for dashboard totals and display hints."""

    def test_overview_totals(self, credit_card):
        """Test limit total, floored available total and other balances."""
        maxed = Account(name="Maxed", type=AccountType.CREDIT_CARD, limit_cents=1000)
        bank = Account(name="Banco", type=AccountType.BANK_ACCOUNT, balance_cents=50000)
        cash = Account(name="Carteira", type=AccountType.CASH)
        transactions = [
            _expense(credit_card.id, 25000, date(2024, 3, 1)),
            _expense(maxed.id, 5000, date(2024, 3, 1)),
        ]
        overview = compute_accounts_overview([credit_card, maxed, bank, cash], transactions)

        assert overview.credit_limit_total_cents == 101000
        assert overview.credit_available_total_cents == 75000
        assert overview.other_balances_total_cents == 50000
        assert len(overview.exposures) == 4

    @pytest.mark.parametrize("account,expected", [
        (Account(name="A", type=AccountType.CREDIT_CARD, limit_cents=60000), "Limite disponível: R$ 600,00"),
        (Account(name="B", type=AccountType.CREDIT_CARD), "Limite não informado"),
        (Account(name="C", type=AccountType.PIX, balance_cents=1000), "Saldo estimado: R$ 10,00"),
        (Account(name="D", type=AccountType.PIX), "Saldo não informado"),
    ])
    def test_describe_balance(self, account, expected):
        """Test the hint under each account."""
        assert describe_balance(compute_account_exposure(account, [])) == expected


class TestExposureAggregator:
    """Tests for the store-backed aggregator."""

    def test_reads_fresh_data_every_call(self, store, credit_card):
        """Test a mutation is reflected without any cache invalidation."""
        aggregator = ExposureAggregator(store)
        purchase = _expense(credit_card.id, 30000, date(2024, 3, 10))
        store.insert_batch([purchase])
        assert aggregator.exposure_for(credit_card).available_cents == 70000

        store.update_where(TransactionFilter.by_id(purchase.id), {"is_paid": True})
        assert aggregator.exposure_for(credit_card).available_cents == 100000

    def test_working_set_is_unpaid_expenses_of_accounts(self, store, credit_card):
        """Test the store query only returns relevant records."""
        store.insert_batch([
            _expense(credit_card.id, 100, date(2024, 3, 1)),
            _expense(credit_card.id, 200, date(2024, 3, 1), is_paid=True),
            _expense(uuid4(), 300, date(2024, 3, 1)),
        ])
        working_set = ExposureAggregator(store).fetch_working_set([credit_card.id])
        assert [t.amount_cents for t in working_set] == [100]

    def test_installments_summary_from_store(self, store, credit_card):
        """Test the per-account future summary reads the store working set."""
        other = uuid4()
        series_id = uuid4()
        store.insert_batch([
            _installment(credit_card.id, 1000, date(2024, 3, 5), 1, 3, series_id),
            _installment(credit_card.id, 1000, date(2024, 4, 5), 2, 3, series_id),
            _installment(credit_card.id, 1000, date(2024, 5, 5), 3, 3, series_id),
            _expense(credit_card.id, 500, date(2024, 4, 9), is_paid=True),
            _expense(credit_card.id, 700, date(2024, 4, 20)),
        ])
        summaries = ExposureAggregator(store).installments_summary(
            [credit_card.id, other], cutoff=date(2024, 3, 31),
        )

        assert [s.account_id for s in summaries] == [credit_card.id, other]
        assert summaries[0].future_amount_cents == 2700
        assert summaries[0].remaining_installments == 2
        assert summaries[1].future_amount_cents == 0

    def test_no_accounts_no_query(self, store):
        """Test an empty account list short-circuits."""
        assert ExposureAggregator(store).fetch_working_set([]) == []
