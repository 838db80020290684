"""
Main Orchestrator for Life Ledger

This module ties the components together and defines the read flow:

    stores + external calendar (bounded window)
        -> normalize -> dedupe -> day index

DESIGN DECISION: The orchestrator enforces the boundaries:
- Reads are bounded to today ± window_months
- External entries never outrank stored ones (dedup drops the external copy)
- A failing external calendar degrades to "stores only", it never blocks the view
- Every pass is audited with its counts

Every pass is request-scoped: a fresh EventNormalizer (and its skip
counters) is created per call, so concurrent passes for different users
share no mutable state.
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

import structlog
from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field

from lifeledger.audit import AuditLogger, create_correlation_id
from lifeledger.config import CalendarSyncSettings, get_settings
from lifeledger.models.event import (
    DayIndex,
    EventCategory,
    EventSource,
    StoreTable,
    UnifiedEvent,
)
from lifeledger.normalization import EventNormalizer
from lifeledger.queries import MonthlySummary, summarize_month, upcoming_events
from lifeledger.reconcile import Deduplicator, EventMatcher, NameDateMatcher, build_index
from lifeledger.services.calendar import CalendarProviderError, ExternalCalendarProvider
from lifeledger.services.storage import RecordStoreInterface


logger = structlog.get_logger(__name__)


class ReconciledView(BaseModel):
    """Result of one reconciliation pass."""

    window_start: date
    window_end: date
    events: list[UnifiedEvent] = Field(
        default_factory=list,
        description="Internal events plus the external entries that survived dedup"
    )
    index: DayIndex = Field(default_factory=DayIndex)

    internal_count: int = 0
    external_count: int = 0
    suppressed_count: int = 0
    skip_counts: dict[str, int] = Field(default_factory=dict)
    external_error: Optional[str] = Field(
        default=None,
        description="Set when the external calendar could not be read"
    )

    @property
    def skipped_count(self) -> int:
        return sum(self.skip_counts.values())


class CalendarReconciler:
    """
    Orchestrates the read flow behind the calendar screen.

    Flow:
    1. Read events, ledger and bank rows for the user within the window
    2. Read the external calendar (if sync is enabled)
    3. Normalize everything into UnifiedEvent, counting skips
    4. Drop external entries that duplicate internal ones
    5. Build the per-day index for the active filters
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        user_id: str,
        calendar_provider: Optional[ExternalCalendarProvider] = None,
        sync_settings: Optional[CalendarSyncSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        matcher: Optional[EventMatcher] = None,
    ):
        self._store = store
        self._user_id = user_id
        self._calendar_provider = calendar_provider
        self._sync = sync_settings or get_settings().calendar_sync
        self._audit_logger = audit_logger
        self._deduplicator = Deduplicator(
            matcher or NameDateMatcher(tolerance_days=self._sync.dedup_tolerance_days)
        )

    def window(self, today: Optional[date] = None) -> tuple[date, date]:
        """Read window: today ± window_months, calendar-month arithmetic."""
        today = today or date.today()
        span = relativedelta(months=self._sync.window_months)
        return today - span, today + span

    async def _read_internal(
        self,
        normalizer: EventNormalizer,
        start: date,
        end: date,
    ) -> list[UnifiedEvent]:
        events = []
        for table in StoreTable:
            rows = await self._store.list_rows(
                table,
                self._user_id,
                date_from=start,
                date_to=end,
            )
            events.extend(normalizer.normalize_many(rows, EventSource(table.value)))
        return events

    async def _read_external(
        self,
        normalizer: EventNormalizer,
        start: date,
        end: date,
        correlation_id: UUID,
    ) -> tuple[list[UnifiedEvent], Optional[str]]:
        if not self._sync.enabled or self._calendar_provider is None:
            return [], None

        try:
            entries = await self._calendar_provider.get_entries(
                start,
                end,
                calendar_ids=self._sync.selected_calendar_ids_list,
            )
        except CalendarProviderError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="external_calendar",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            logger.warning("external_calendar_unavailable", error=str(e))
            return [], str(e)

        return normalizer.normalize_many(entries, EventSource.EXTERNAL), None

    async def load(
        self,
        active_filters: Optional[Iterable[EventCategory]] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ReconciledView:
        """
        Run one reconciliation pass.

        Args:
            active_filters: Visible categories (None = all)
            today: Window anchor (defaults to the current date)

        Returns:
            ReconciledView with the merged events, the day index and counts

        Raises:
            StorageError: If a record store cannot be read
        """
        correlation_id = correlation_id or create_correlation_id()
        start, end = self.window(today)
        filters = set(EventCategory) if active_filters is None else set(active_filters)

        normalizer = EventNormalizer()
        internal = await self._read_internal(normalizer, start, end)
        external, external_error = await self._read_external(
            normalizer, start, end, correlation_id
        )

        deduped = self._deduplicator.run(internal, external)
        index = build_index(deduped.events, filters)

        view = ReconciledView(
            window_start=start,
            window_end=end,
            events=deduped.events,
            index=index,
            internal_count=len(internal),
            external_count=len(external),
            suppressed_count=deduped.suppressed_count,
            skip_counts={source.value: count for source, count in normalizer.skip_counts.items()},
            external_error=external_error,
        )

        if self._audit_logger:
            await self._audit_logger.log_reconciled(
                internal_count=view.internal_count,
                external_count=view.external_count,
                suppressed_count=view.suppressed_count,
                skipped_count=view.skipped_count,
                correlation_id=correlation_id,
            )

        return view

    async def monthly_summary(
        self,
        year: int,
        month: int,
        today: Optional[date] = None,
    ) -> MonthlySummary:
        """Given/received totals for a month inside the read window."""
        view = await self.load(today=today or date(year, month, 1))
        return summarize_month(view.events, year, month)

    async def upcoming(
        self,
        today: Optional[date] = None,
        limit: int = 2,
    ) -> list[UnifiedEvent]:
        """The next stored events from today on."""
        today = today or date.today()
        view = await self.load(today=today)
        return upcoming_events(view.events, today=today, limit=limit)
