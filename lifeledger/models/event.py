"""
Core Data Models for Life Ledger

These models define the shapes flowing through the reconciliation core:
1. UnifiedEvent - the one canonical, in-memory record every source maps into
2. DayBucket / DayIndex - the derived per-day view
3. FormInput / WriteResult - what the writer accepts and reports

DESIGN DECISION: Four persisted row shapes plus the external calendar shape
collapse into a single UnifiedEvent tagged by `source`. Downstream logic
(dedup, indexing, summaries) only ever sees UnifiedEvent.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EventSource(str, Enum):
    """
    Where a UnifiedEvent came from.

    CRITICAL: The source decides delete/update routing.
    EXTERNAL records are read-only.
    """
    EVENTS = "events"
    LEDGER = "ledger"
    BANK_TRANSACTIONS = "bank_transactions"
    EXTERNAL = "external"


class EventCategory(str, Enum):
    """Calendar categories, also used as the filter keys of the day view."""
    CEREMONY = "ceremony"
    TODO = "todo"
    SCHEDULE = "schedule"
    EXPENSE = "expense"


class CategoryGroup(str, Enum):
    """Top-level ledger taxonomy groups."""
    FIXED_EXPENSE = "fixed_expense"
    VARIABLE_EXPENSE = "variable_expense"
    INCOME = "income"
    ASSET_TRANSFER = "asset_transfer"


class StoreTable(str, Enum):
    """Persisted collections owned by the external datastore."""
    EVENTS = "events"
    LEDGER = "ledger"
    BANK_TRANSACTIONS = "bank_transactions"


class RecurrenceRule(str, Enum):
    """Repeat options offered when creating an event."""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class WriteMode(str, Enum):
    CREATE = "create"
    UPDATE = "update"


# =============================================================================
# CANONICAL EVENT
# =============================================================================

class UnifiedEvent(BaseModel):
    """
    Canonical read-side record.

    Materialized per read from the stored rows and the external feed.
    Never persisted in this shape. Frozen so that `source` cannot change
    after normalization; use model_copy(update=...) for derived copies.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        description="Source-qualified identifier, e.g. 'ledger:42'"
    )
    record_id: str = Field(
        ...,
        description="Row identifier inside the owning store"
    )
    source: EventSource
    category: Optional[EventCategory] = None
    type: Optional[str] = Field(
        default=None,
        description="Free-form subtype (wedding, funeral, receipt, transfer, ...); None when the row has none"
    )
    name: str = ""
    date: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}-\d{2}$",
        description="Calendar date, YYYY-MM-DD"
    )
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    memo: Optional[str] = None

    amount: float = 0.0
    is_received: bool = False
    is_paid: bool = False
    is_completed: bool = False
    relation: Optional[str] = None

    # Recurrence series this row belongs to (events store only)
    group_id: Optional[str] = None

    # The external calendar's own color, kept for presentation
    calendar_color: Optional[str] = None

    # Derived by the day index builder, never persisted
    color: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.source == EventSource.EXTERNAL

    @property
    def filter_category(self) -> EventCategory:
        """Category used for filtering; uncategorized rows count as ceremonies."""
        return self.category or EventCategory.CEREMONY


class ExternalCalendarEntry(BaseModel):
    """An entry as returned by the external calendar provider."""

    id: str
    title: str = ""
    start_date: str = Field(
        ...,
        description="ISO 8601; date-only for all-day entries"
    )
    end_date: Optional[str] = None
    all_day: bool = False
    calendar_id: Optional[str] = None
    color: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


# =============================================================================
# DAY VIEW
# =============================================================================

class DayBucket(BaseModel):
    """Events visible on one calendar day."""

    date: str
    events: list[UnifiedEvent] = Field(default_factory=list)


class DailyTotals(BaseModel):
    """Income and expense sums of one day (ledger-only mode)."""

    income: float = 0.0
    expense: float = 0.0


class DayIndex(BaseModel):
    """
    Result of building the per-day view.

    `daily_totals` is only populated in ledger-only mode.
    """

    buckets: dict[str, DayBucket] = Field(default_factory=dict)
    daily_totals: dict[str, DailyTotals] = Field(default_factory=dict)
    ledger_only: bool = False

    def events_on(self, date: str) -> list[UnifiedEvent]:
        bucket = self.buckets.get(date)
        return list(bucket.events) if bucket else []


# =============================================================================
# WRITE SIDE
# =============================================================================

class FormInput(BaseModel):
    """
    A user-entered submission tagged with a calendar category.

    Dates are kept as raw strings here; the writer validates them
    before any store is touched so a bad date never causes a partial write.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    category: Optional[EventCategory] = None
    type: Optional[str] = Field(
        default=None,
        description="Event subtype (wedding, funeral, birthday, APPOINTMENT, ...)"
    )
    name: str = ""
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_all_day: bool = False
    location: Optional[str] = None
    memo: Optional[str] = None

    amount: float = Field(default=0.0, ge=0)
    is_received: bool = False
    relation: Optional[str] = None

    # Ledger classification
    ledger_category: Optional[str] = Field(
        default=None,
        description="Taxonomy category (e.g. 식비); classified from the name when absent"
    )
    sub_category: Optional[str] = None
    category_group: Optional[CategoryGroup] = None

    # Bank transactions
    transaction_type: Optional[str] = Field(
        default=None,
        pattern="^(deposit|withdrawal)$"
    )

    recurrence: RecurrenceRule = RecurrenceRule.NONE
    alarm_minutes: Optional[int] = Field(default=None, ge=0)
    is_completed: bool = False
    is_paid: bool = False


class WriteResult(BaseModel):
    """What a successful write touched."""

    table: StoreTable
    mode: WriteMode
    record_ids: list[str] = Field(default_factory=list)
    group_id: Optional[str] = None


class ValidationIssue(BaseModel):
    """A single problem found in a form submission."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'inconsistent')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class FormValidationResult(BaseModel):
    """Outcome of validating a FormInput before it is routed."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]
