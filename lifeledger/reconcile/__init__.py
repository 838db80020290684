"""Deduplication and per-day indexing of unified events."""

from lifeledger.reconcile.day_index import (
    EVENT_COLORS,
    EXPENSE_COLOR,
    INCOME_COLOR,
    NEUTRAL_COLOR,
    build_index,
    event_color,
    is_ledger_only,
)
from lifeledger.reconcile.dedup import (
    DedupResult,
    Deduplicator,
    EventMatcher,
    NameDateMatcher,
    dedupe,
    normalize_event_name,
)

__all__ = [
    "EVENT_COLORS",
    "EXPENSE_COLOR",
    "INCOME_COLOR",
    "NEUTRAL_COLOR",
    "DedupResult",
    "Deduplicator",
    "EventMatcher",
    "NameDateMatcher",
    "build_index",
    "dedupe",
    "event_color",
    "is_ledger_only",
    "normalize_event_name",
]
