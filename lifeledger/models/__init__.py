"""
Data Models Package

This package contains all Pydantic models used in Life Ledger.
All data flowing through the reconciliation core conforms to these schemas.
"""

from lifeledger.models.event import (
    CategoryGroup,
    DailyTotals,
    DayBucket,
    DayIndex,
    EventCategory,
    EventSource,
    ExternalCalendarEntry,
    FormInput,
    FormValidationResult,
    RecurrenceRule,
    StoreTable,
    UnifiedEvent,
    ValidationIssue,
    WriteMode,
    WriteResult,
)
from lifeledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Event models
    "CategoryGroup",
    "DailyTotals",
    "DayBucket",
    "DayIndex",
    "EventCategory",
    "EventSource",
    "ExternalCalendarEntry",
    "FormInput",
    "FormValidationResult",
    "RecurrenceRule",
    "StoreTable",
    "UnifiedEvent",
    "ValidationIssue",
    "WriteMode",
    "WriteResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
