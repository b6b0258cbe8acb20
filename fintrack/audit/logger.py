"""
Audit Logger

DESIGN DECISION: Every create, update and delete is logged.
This provides:
1. Complete traceability of series edits
2. Debugging capability when a scoped edit touches more than expected
3. The history shown by the audit log viewer

The audit logger:
- Always writes a local structured log line
- Persists to audit storage when one is configured
- Gracefully handles storage failures (a failed audit write never
  undoes or fails the operation that was audited)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from fintrack.models.audit import AuditAction, AuditEvent, AuditEventBuilder
from fintrack.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog on top of the stdlib logging module."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=numeric_level)
    # basicConfig is a no-op once handlers exist
    logging.getLogger().setLevel(numeric_level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog for local logging
configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and the log viewer)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_series_created(
        self,
        entity_id: UUID,
        series_type: str,
        series_id: Optional[UUID],
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log creation of a single record or a whole series."""
        event = AuditEventBuilder.series_created(
            entity_id=entity_id,
            series_type=series_type,
            series_id=series_id,
            count=count,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_transactions_updated(
        self,
        entity_id: UUID,
        scope: str,
        changes: dict[str, Any],
        affected: int,
        series_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an update, single or scoped to the rest of a series."""
        event = AuditEventBuilder.transactions_updated(
            entity_id=entity_id,
            scope=scope,
            changes=changes,
            affected=affected,
            series_id=series_id,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_transactions_deleted(
        self,
        entity_id: UUID,
        scope: str,
        affected: int,
        series_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a delete, single or scoped to the rest of a series."""
        event = AuditEventBuilder.transactions_deleted(
            entity_id=entity_id,
            scope=scope,
            affected=affected,
            series_id=series_id,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_account_changed(
        self,
        account_id: UUID,
        action: AuditAction,
        name: str,
        changes: Optional[dict[str, Any]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log account create/update/delete."""
        event = AuditEventBuilder.account_changed(
            account_id=account_id,
            action=action,
            name=name,
            changes=changes,
            correlation_id=correlation_id,
        )
        self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a series edit).
    Pass it through all subsequent operations.
    """
    return uuid4()
