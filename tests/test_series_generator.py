"""Tests for series expansion and intent validation."""

from datetime import date
from uuid import uuid4

import pytest

from fintrack.errors import PersistenceError, ValidationError
from fintrack.models import (
    AuditAction,
    Category,
    SeriesType,
    TransactionIntent,
    TransactionType,
)
from fintrack.series import (
    MONTHLY_OCCURRENCES,
    SeriesGenerator,
    build_series,
    calculate_installments,
    format_series_label,
    is_series_type,
)
from fintrack.validation import TransactionValidator


class TestCalculateInstallments:
    """Tests for cent-exact splitting."""

    def test_remainder_goes_to_first_installments(self):
        """Test 100,00 in 3 gives 33,34 + 33,33 + 33,33."""
        assert calculate_installments(10000, 3) == [3334, 3333, 3333]

    @pytest.mark.parametrize("total,quantity", [
        (10000, 3),
        (1, 2),
        (0, 5),
        (999999, 24),
        (12345, 7),
    ])
    def test_parts_sum_to_total_and_never_increase(self, total, quantity):
        """Test the split invariants for a spread of inputs."""
        parts = calculate_installments(total, quantity)
        assert len(parts) == quantity
        assert sum(parts) == total
        assert max(parts) - min(parts) <= 1
        assert parts == sorted(parts, reverse=True)
        assert parts[:total % quantity] == [total // quantity + 1] * (total % quantity)

    def test_fewer_than_two_installments_rejected(self):
        """Test the minimum of 2."""
        with pytest.raises(ValidationError, match="Minimum 2 installments"):
            calculate_installments(1000, 1)

    def test_negative_total_rejected(self):
        """Test amounts are never negative."""
        with pytest.raises(ValidationError):
            calculate_installments(-100, 2)


class TestSeriesLabels:
    """Tests for series display labels."""

    def test_labels(self):
        """Test each series type label."""
        assert format_series_label(SeriesType.INSTALLMENT, 2, 10) == "Parcelada 2/10"
        assert format_series_label(SeriesType.MONTHLY, 3, None) == "Mensal 3/12"
        assert format_series_label(SeriesType.SINGLE) == "Única"

    def test_is_series_type(self):
        """Test only single is not a series."""
        assert not is_series_type(SeriesType.SINGLE)
        assert is_series_type(SeriesType.INSTALLMENT)
        assert is_series_type(SeriesType.MONTHLY)


class TestBuildSeries:
    """Tests for the pure expansion step."""

    def _intent(self, **overrides):
        data = {
            "type": "expense",
            "amount_cents": 10000,
            "date": "2024-01-31",
            "description": "Notebook",
        }
        data.update(overrides)
        return TransactionIntent(**data)

    def test_single(self):
        """Test a single intent yields one 1/1 record without series id."""
        records = build_series(self._intent())
        assert len(records) == 1
        record = records[0]
        assert record.series_type == SeriesType.SINGLE
        assert record.series_id is None
        assert (record.series_sequence, record.series_total) == (1, 1)
        assert record.series_amount_total_cents == 10000

    def test_installments(self):
        """Test the 3x example: amounts, dates and shared series id."""
        records = build_series(self._intent(recurrence_type="installment", installments_count=3))

        assert [r.amount_cents for r in records] == [3334, 3333, 3333]
        assert [r.date for r in records] == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
        ]
        assert [r.series_sequence for r in records] == [1, 2, 3]
        assert {r.series_total for r in records} == {3}
        assert {r.series_amount_total_cents for r in records} == {10000}
        assert len({r.series_id for r in records}) == 1
        assert records[0].series_id is not None

    def test_monthly(self):
        """Test 12 occurrences of the same amount with total x12."""
        records = build_series(self._intent(
            amount_cents=5000, date="2024-01-15", recurrence_type="monthly",
        ))

        assert len(records) == MONTHLY_OCCURRENCES
        assert {r.amount_cents for r in records} == {5000}
        assert {r.series_amount_total_cents for r in records} == {60000}
        assert [r.date for r in records] == [date(2024, month, 15) for month in range(1, 13)]
        assert [r.series_sequence for r in records] == list(range(1, 13))

    def test_records_share_creation_time_and_fields(self):
        """Test every occurrence copies the intent's descriptive fields."""
        account_id = uuid4()
        records = build_series(self._intent(
            recurrence_type="installment", installments_count=4,
            account_id=account_id, payment_method="credito", is_paid=True,
        ))
        assert {r.created_at for r in records} == {records[0].created_at}
        assert all(r.account_id == account_id for r in records)
        assert all(r.payment_method == "credito" for r in records)
        assert all(r.is_paid for r in records)
        assert len({r.id for r in records}) == 4

    def test_explicit_series_id(self):
        """Test a caller supplied series id is used for every record."""
        series_id = uuid4()
        records = build_series(
            self._intent(recurrence_type="monthly"), series_id=series_id,
        )
        assert {r.series_id for r in records} == {series_id}


class TestTransactionValidator:
    """Tests for the two-stage validation."""

    def test_schema_failure_reports_field(self, intent_data):
        """Test stage 1 issues carry the field name."""
        intent_data["amount_cents"] = "lots"
        intent, result = TransactionValidator().validate(intent_data)
        assert intent is None
        assert not result.schema_valid
        assert result.issues[0].field == "amount_cents"

    def test_installment_count_required(self, intent_data):
        """Test installment mode needs a count."""
        intent_data["recurrence_type"] = "installment"
        _, result = TransactionValidator().validate(intent_data)
        assert not result.is_valid
        assert result.issues[0].issue_type == "missing"

    def test_installment_bounds(self, intent_data):
        """Test counts outside the configured range are errors."""
        validator = TransactionValidator(min_installments=2, max_installments=24)
        intent_data["recurrence_type"] = "installment"

        intent_data["installments_count"] = 1
        _, low = validator.validate(intent_data)
        intent_data["installments_count"] = 25
        _, high = validator.validate(intent_data)
        intent_data["installments_count"] = 24
        _, ok = validator.validate(intent_data)

        assert low.issues[0].message == "Minimum 2 installments"
        assert not high.is_valid
        assert ok.is_valid

    def test_count_ignored_outside_installment_mode(self, intent_data):
        """Test a stray count on a monthly intent is only informational."""
        intent_data["recurrence_type"] = "monthly"
        intent_data["installments_count"] = 5
        _, result = TransactionValidator().validate(intent_data)
        assert result.is_valid
        assert result.issues[0].severity == "info"

    def test_category_type_mismatch(self, intent_data):
        """Test an income category on an expense is rejected."""
        category = Category(name="Salário", type=TransactionType.INCOME)
        with pytest.raises(ValidationError) as exc_info:
            TransactionValidator().validate_or_raise(intent_data, category)
        assert exc_info.value.issues[0].issue_type == "type_mismatch"

    def test_unknown_recurrence_type(self, intent_data):
        """Test an unrecognized recurrence is a validation error."""
        intent_data["recurrence_type"] = "weekly"
        with pytest.raises(ValidationError) as exc_info:
            TransactionValidator().validate_or_raise(intent_data)
        assert exc_info.value.issues[0].field == "recurrence_type"

    def test_single_override_keeps_other_bound_from_settings(self, monkeypatch):
        """Test an explicit bound is kept as given, even when falsy."""
        monkeypatch.setenv("MAX_INSTALLMENTS", "6")
        validator = TransactionValidator(min_installments=0)
        assert validator.min_installments == 0
        assert validator.max_installments == 6

    def test_bounds_from_settings(self, intent_data, monkeypatch):
        """Test the installment bounds are read from the environment."""
        monkeypatch.setenv("MAX_INSTALLMENTS", "6")
        intent_data["recurrence_type"] = "installment"
        intent_data["installments_count"] = 7
        with pytest.raises(ValidationError):
            TransactionValidator().validate_or_raise(intent_data)


class TestSeriesGenerator:
    """Tests for validate → expand → persist."""

    def test_generate_persists_whole_series(self, store, intent_data):
        """Test one call inserts every occurrence."""
        intent_data.update(recurrence_type="installment", installments_count=10)
        records = SeriesGenerator(store).generate(intent_data)

        assert len(records) == 10
        assert len(store) == 10
        assert sum(r.amount_cents for r in records) == 10000

    def test_invalid_intent_writes_nothing(self, store, intent_data):
        """Test validation runs before the store is touched."""
        intent_data.update(recurrence_type="installment", installments_count=1)
        with pytest.raises(ValidationError):
            SeriesGenerator(store).generate(intent_data)
        assert len(store) == 0

    def test_failed_insert_writes_nothing(self, store, intent_data):
        """Test a store failure leaves no partial series behind."""

        class FailingStore(type(store)):
            def insert_batch(self, records):
                raise PersistenceError("sheet unavailable")

        failing = FailingStore()
        intent_data.update(recurrence_type="monthly")
        with pytest.raises(PersistenceError):
            SeriesGenerator(failing).generate(intent_data)
        assert len(failing) == 0

    def test_generate_emits_one_audit_event(self, store, intent_data, audit_logger, audit_storage):
        """Test a generated series is audited once with its series id."""
        intent_data.update(recurrence_type="monthly")
        records = SeriesGenerator(store, audit_logger=audit_logger).generate(intent_data)

        events = audit_storage.get_recent_events()
        assert len(events) == 1
        assert events[0].action == AuditAction.CREATED
        assert events[0].meta["series_id"] == records[0].series_id
        assert events[0].meta["count"] == 12

    def test_preview_does_not_persist(self, store, intent_data):
        """Test preview only expands."""
        intent_data.update(recurrence_type="monthly")
        assert len(SeriesGenerator(store).preview(intent_data)) == 12
        assert len(store) == 0
