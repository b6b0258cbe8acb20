"""
Audit Models for Finance Tracker

Every create, update and delete of a transaction, account or category
is recorded. This provides:
1. Complete traceability of series edits ("who changed installments 4-10?")
2. Debugging information when a scoped edit touches more than expected
3. The data the audit log viewer reads

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEntityType(str, Enum):
    """Entities whose changes are audited."""
    TRANSACTION = "transaction"
    CATEGORY = "category"
    ACCOUNT = "account"


class AuditAction(str, Enum):
    """What happened to the entity."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    For series operations entity_id is the target record and the
    series id plus the number of affected records go into meta.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # What entity, what happened
    entity_type: AuditEntityType
    entity_id: UUID
    action: AuditAction
    severity: AuditSeverity = AuditSeverity.INFO

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one series edit)"
    )

    message: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    changes: dict[str, Any] = Field(
        default_factory=dict,
        description="Field values written by the operation"
    )
    meta: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra context (series id, affected count, scope)"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "entity_type": self.entity_type.value,
            "entity_id": str(self.entity_id),
            "action": self.action.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "message": self.message,
            "changes": _jsonable(self.changes),
            "meta": _jsonable(self.meta),
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, entity_type, entity_id, action, severity,
         correlation_id, message, changes_json, meta_json]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.entity_type.value,
            str(self.entity_id),
            self.action.value,
            self.severity.value,
            str(self.correlation_id) if self.correlation_id else "",
            self.message,
            json.dumps(_jsonable(self.changes)) if self.changes else "",
            json.dumps(_jsonable(self.meta)) if self.meta else "",
        ]


def _jsonable(values: dict[str, Any]) -> dict[str, Any]:
    """Stringify UUIDs, dates and enums so the dict can be JSON-encoded."""
    result = {}
    for key, value in values.items():
        if isinstance(value, Enum):
            result[key] = value.value
        elif value is None or isinstance(value, (bool, int, float, str)):
            result[key] = value
        else:
            result[key] = str(value)
    return result


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.series_created(first_id, series_id, 12, correlation_id)
        event = AuditEventBuilder.transactions_deleted(target_id, "single", 1, correlation_id)
    """

    @staticmethod
    def series_created(
        entity_id: UUID,
        series_type: str,
        series_id: Optional[UUID],
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            entity_type=AuditEntityType.TRANSACTION,
            entity_id=entity_id,
            action=AuditAction.CREATED,
            correlation_id=correlation_id,
            message=f"Created {count} {series_type} transaction(s)",
            meta={
                "series_type": series_type,
                "series_id": series_id,
                "count": count,
            },
        )

    @staticmethod
    def transactions_updated(
        entity_id: UUID,
        scope: str,
        changes: dict[str, Any],
        affected: int,
        series_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            entity_type=AuditEntityType.TRANSACTION,
            entity_id=entity_id,
            action=AuditAction.UPDATED,
            correlation_id=correlation_id,
            message=f"Updated {affected} transaction(s) ({scope})",
            changes=changes,
            meta={
                "scope": scope,
                "series_id": series_id,
                "count": affected,
            },
        )

    @staticmethod
    def transactions_deleted(
        entity_id: UUID,
        scope: str,
        affected: int,
        series_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            entity_type=AuditEntityType.TRANSACTION,
            entity_id=entity_id,
            action=AuditAction.DELETED,
            severity=AuditSeverity.WARNING if affected > 1 else AuditSeverity.INFO,
            correlation_id=correlation_id,
            message=f"Deleted {affected} transaction(s) ({scope})",
            meta={
                "scope": scope,
                "series_id": series_id,
                "count": affected,
            },
        )

    @staticmethod
    def account_changed(
        account_id: UUID,
        action: AuditAction,
        name: str,
        changes: Optional[dict[str, Any]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            entity_type=AuditEntityType.ACCOUNT,
            entity_id=account_id,
            action=action,
            correlation_id=correlation_id,
            message=f"Account {action.value}: {name}",
            changes=changes or {},
        )
