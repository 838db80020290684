"""
Day Index Builder

Builds the date -> events view the calendar renders, assigning each
visible event its tag color.

Ledger-only mode (only the `expense` filter active) additionally sums
income and expense per day so the calendar can show amounts instead of
event tags.
"""

from collections.abc import Iterable

import structlog

from lifeledger.models.event import (
    DailyTotals,
    DayBucket,
    DayIndex,
    EventCategory,
    UnifiedEvent,
)


INCOME_COLOR = "#4D79FF"
EXPENSE_COLOR = "#FF4D4D"
NEUTRAL_COLOR = "#999"

# Looked up by event type first, then by category
EVENT_COLORS: dict[str, str] = {
    "ceremony": "#FF6B6B",
    "todo": "#4A90D9",
    "schedule": "#4ECDC4",
    "wedding": "#FF6B6B",
    "funeral": "#9E9E9E",
    "birthday": "#FFD93D",
    "other": "#4ECDC4",
    "expense": EXPENSE_COLOR,
    "income": INCOME_COLOR,
    "transfer": "#FF9F43",
    "receipt": EXPENSE_COLOR,
}

MONEY_TYPES = frozenset({"receipt", "transfer"})

logger = structlog.get_logger(__name__)


def event_color(event: UnifiedEvent) -> str:
    """
    Tag color, first match wins:
    income -> outgoing money -> type color -> category color -> neutral.
    """
    if event.is_received:
        return INCOME_COLOR
    if event.type in MONEY_TYPES:
        return EXPENSE_COLOR
    return (
        EVENT_COLORS.get(event.type)
        or EVENT_COLORS.get(event.filter_category.value)
        or NEUTRAL_COLOR
    )


def is_ledger_only(active_filters: Iterable[EventCategory]) -> bool:
    return set(active_filters) == {EventCategory.EXPENSE}


def _bucket_order(event: UnifiedEvent) -> tuple:
    # Untimed (all-day) events first, then by start time
    return (event.start_time is not None, event.start_time or "")


def _known_filters(active_filters: Iterable) -> set[EventCategory]:
    # Unknown filter values are dropped, not raised
    filters = set()
    for value in active_filters:
        try:
            filters.add(EventCategory(value))
        except ValueError:
            logger.warning("unknown_filter_ignored", filter=value)
    return filters


def build_index(
    events: Iterable[UnifiedEvent],
    active_filters: Iterable[EventCategory],
) -> DayIndex:
    """
    Group visible events by date.

    An event is visible when its category (None counts as ceremony) is in
    `active_filters`. Input events are not modified; buckets hold colored
    copies. Same input, same output. Filter values that are not a known
    category are ignored.
    """
    filters = _known_filters(active_filters)
    ledger_only = is_ledger_only(filters)

    grouped: dict[str, list[UnifiedEvent]] = {}
    for event in events:
        if event.filter_category not in filters:
            continue
        colored = event.model_copy(update={"color": event_color(event)})
        grouped.setdefault(event.date, []).append(colored)

    buckets = {
        day: DayBucket(date=day, events=sorted(grouped[day], key=_bucket_order))
        for day in sorted(grouped)
    }

    daily_totals: dict[str, DailyTotals] = {}
    if ledger_only:
        for day, bucket in buckets.items():
            totals = DailyTotals()
            for event in bucket.events:
                if event.is_received:
                    totals.income += abs(event.amount)
                else:
                    totals.expense += abs(event.amount)
            daily_totals[day] = totals
        logger.debug("ledger_only_totals_built", days=len(daily_totals))

    return DayIndex(buckets=buckets, daily_totals=daily_totals, ledger_only=ledger_only)
