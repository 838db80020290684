"""Read-side summaries over reconciled events."""

from lifeledger.queries.summary import (
    MonthlySummary,
    events_on,
    summarize_month,
    totals_by_group,
    upcoming_events,
)

__all__ = [
    "MonthlySummary",
    "events_on",
    "summarize_month",
    "totals_by_group",
    "upcoming_events",
]
