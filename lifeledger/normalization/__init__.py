"""Normalization of heterogeneous records into UnifiedEvent."""

from lifeledger.normalization.dates import (
    extract_calendar_date,
    extract_clock_time,
    parse_calendar_date,
)
from lifeledger.normalization.normalizer import (
    INCOME_LEDGER_CATEGORIES,
    PAID_MARKER,
    EventNormalizer,
    NormalizationSkip,
    qualified_id,
)

__all__ = [
    "INCOME_LEDGER_CATEGORIES",
    "PAID_MARKER",
    "EventNormalizer",
    "NormalizationSkip",
    "extract_calendar_date",
    "extract_clock_time",
    "parse_calendar_date",
    "qualified_id",
]
