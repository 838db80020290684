"""
Audit Models for Life Ledger

Every write against the record stores is logged for audit purposes.
This provides:
1. Traceability of what was written where
2. A record of partially written recurrence series
3. Visibility into rejected writes (read-only sources, bad dates)

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Persistence
    EVENT_SAVED = "event_saved"
    EVENT_UPDATED = "event_updated"
    EVENT_DELETED = "event_deleted"
    RECURRENCE_PARTIAL_FAILURE = "recurrence_partial_failure"
    SAVE_FAILED = "save_failed"

    # Rejected writes
    READ_ONLY_REJECTED = "read_only_rejected"
    INVALID_DATE_REJECTED = "invalid_date_rejected"
    WRITE_ROUTE_REJECTED = "write_route_rejected"

    # Read pipeline
    RECONCILE_COMPLETED = "reconcile_completed"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Store table (events, ledger, bank_transactions, external)"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Record ID the event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g. one form submission)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, ensure_ascii=False) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.event_saved("ledger", ["12"], correlation_id)
        event = AuditEventBuilder.read_only_rejected("external:abc", "delete", correlation_id)
    """

    @staticmethod
    def event_saved(
        table: str,
        record_ids: list[str],
        correlation_id: Optional[UUID],
        group_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_SAVED,
            entity_type=table,
            entity_id=record_ids[0] if record_ids else None,
            correlation_id=correlation_id,
            description=f"Saved {len(record_ids)} row(s) to {table}",
            details={
                "record_ids": record_ids,
                "group_id": group_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def event_updated(
        table: str,
        record_id: str,
        fields: list[str],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_UPDATED,
            entity_type=table,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Updated {table} row {record_id}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def event_deleted(
        table: str,
        record_id: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_DELETED,
            entity_type=table,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Deleted {table} row {record_id}",
            is_user_action=True,
        )

    @staticmethod
    def recurrence_partial_failure(
        group_id: str,
        failed_index: int,
        total: int,
        inserted_ids: list[str],
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRENCE_PARTIAL_FAILURE,
            severity=AuditSeverity.ERROR,
            entity_type="events",
            correlation_id=correlation_id,
            description=f"Recurrence insert failed at occurrence {failed_index + 1} of {total}",
            details={
                "group_id": group_id,
                "failed_index": failed_index,
                "total": total,
                "inserted_ids": inserted_ids,
            },
            error_message=error_message,
        )

    @staticmethod
    def read_only_rejected(
        event_id: str,
        operation: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.READ_ONLY_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="external",
            entity_id=event_id,
            correlation_id=correlation_id,
            description=f"Rejected {operation} of an external calendar entry",
            details={"operation": operation},
            is_user_action=True,
        )

    @staticmethod
    def invalid_date_rejected(
        value: Optional[str],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVALID_DATE_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Rejected write with a missing or unparseable date",
            details={"value": value},
            is_user_action=True,
        )

    @staticmethod
    def write_route_rejected(
        category: Optional[str],
        source: Optional[str],
        mode: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WRITE_ROUTE_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"No write route for category={category} source={source}",
            details={
                "category": category,
                "source": source,
                "mode": mode,
            },
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        table: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=table,
            correlation_id=correlation_id,
            description=f"Write to {table} failed",
            error_message=error_message,
        )

    @staticmethod
    def reconcile_completed(
        internal_count: int,
        external_count: int,
        suppressed_count: int,
        skipped_count: int,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILE_COMPLETED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=(
                f"Reconciled {internal_count} internal and {external_count} "
                f"external events"
            ),
            details={
                "internal": internal_count,
                "external": external_count,
                "suppressed_duplicates": suppressed_count,
                "skipped_records": skipped_count,
            },
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
