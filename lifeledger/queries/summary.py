"""
Summary Queries

DESIGN DECISION: Summaries are computed from UnifiedEvent lists that have
already been through normalization and dedup. Nothing here reads a store,
so every number can be traced back to rows the caller already holds.

Events rows that carry an amount (ceremony gifts, bills saved as todos)
are split by the paid marker:
- paid outflows count as given
- unpaid outflows count as pending
Ledger and bank flows are counted by direction only.
"""

from collections.abc import Iterable
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from lifeledger.categories import resolve_group
from lifeledger.models.event import (
    CategoryGroup,
    EventSource,
    UnifiedEvent,
)


MONEY_SOURCES = frozenset({EventSource.LEDGER, EventSource.BANK_TRANSACTIONS})


class MonthlySummary(BaseModel):
    """Money given and received within one calendar month."""

    year: int
    month: int = Field(..., ge=1, le=12)
    total_given: float = 0.0
    total_received: float = 0.0
    pending_given: float = 0.0
    event_count: int = 0

    @property
    def diff(self) -> float:
        """Received minus everything given or still owed."""
        return self.total_received - self.total_given - self.pending_given


def _in_month(event: UnifiedEvent, year: int, month: int) -> bool:
    return event.date.startswith(f"{year:04d}-{month:02d}-")


def _is_events_money_row(event: UnifiedEvent) -> bool:
    return event.source == EventSource.EVENTS and event.amount != 0


def summarize_month(events: Iterable[UnifiedEvent], year: int, month: int) -> MonthlySummary:
    """
    Totals for one month.

    Events rows count only when they carry an amount, whatever their
    category. External entries are ignored.
    """
    summary = MonthlySummary(year=year, month=month)

    for event in events:
        if not _in_month(event, year, month):
            continue

        amount = abs(event.amount)
        if _is_events_money_row(event):
            if event.is_received:
                summary.total_received += amount
            elif event.is_paid:
                summary.total_given += amount
            else:
                summary.pending_given += amount
        elif event.source in MONEY_SOURCES:
            if event.is_received:
                summary.total_received += amount
            else:
                summary.total_given += amount
        else:
            continue

        summary.event_count += 1

    return summary


def totals_by_group(events: Iterable[UnifiedEvent]) -> dict[CategoryGroup, float]:
    """
    Σ|amount| of ledger rows per category group.

    The stored ledger category travels in `relation`; rows without one
    land in the default group.
    """
    totals = {group: 0.0 for group in CategoryGroup}
    for event in events:
        if event.source != EventSource.LEDGER:
            continue
        totals[resolve_group(event.relation)] += abs(event.amount)
    return totals


def _time_key(event: UnifiedEvent) -> tuple:
    return (event.date, event.start_time is not None, event.start_time or "")


def upcoming_events(
    events: Iterable[UnifiedEvent],
    today: Optional[date] = None,
    limit: int = 2,
) -> list[UnifiedEvent]:
    """The next `limit` events-store rows dated today or later."""
    today_str = (today or date.today()).isoformat()
    upcoming = [
        event for event in events
        if event.source == EventSource.EVENTS and event.date >= today_str
    ]
    upcoming.sort(key=_time_key)
    return upcoming[:limit]


def events_on(events: Iterable[UnifiedEvent], day: str) -> list[UnifiedEvent]:
    """Events on one calendar day, untimed first, then by start time."""
    return sorted(
        (event for event in events if event.date == day),
        key=_time_key,
    )
