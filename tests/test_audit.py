"""Tests for the audit logger."""

from uuid import uuid4

from fintrack.audit import AuditLogger, create_correlation_id
from fintrack.models import AuditAction, AuditEntityType, AuditEventBuilder
from fintrack.services.storage import InMemoryAuditStorage


class BrokenAuditStorage(InMemoryAuditStorage):
    def append_event(self, event):
        raise RuntimeError("sheet unavailable")


class TestAuditLogger:
    """Tests for local + persisted audit logging."""

    def test_persists_when_storage_configured(self, audit_logger, audit_storage):
        """Test events reach the audit storage."""
        account_id = uuid4()
        audit_logger.log_account_changed(account_id, AuditAction.CREATED, "Nubank")
        events = audit_storage.get_events_by_entity(AuditEntityType.ACCOUNT, account_id)
        assert events[0].message == "Account created: Nubank"

    def test_local_only_logger(self):
        """Test a logger without storage still reports success."""
        assert AuditLogger().log(AuditEventBuilder.transactions_deleted(uuid4(), "single", 1))

    def test_storage_failure_does_not_raise(self):
        """Test an audit write failure never fails the business operation."""
        logger = AuditLogger(BrokenAuditStorage())
        event = AuditEventBuilder.series_created(uuid4(), "monthly", uuid4(), 12)
        assert logger.log(event) is False

    def test_recent_events_newest_first(self, audit_logger, audit_storage):
        """Test recent events ordering and limit."""
        for _ in range(3):
            audit_logger.log_transactions_deleted(uuid4(), "single", 1)
        recent = audit_storage.get_recent_events(limit=2)
        assert len(recent) == 2
        assert recent[0].timestamp >= recent[1].timestamp

    def test_correlation_ids_are_unique(self):
        """Test correlation id generation."""
        assert create_correlation_id() != create_correlation_id()
