"""
External Calendar Deduplicator

Hides external calendar entries that duplicate an internal record.

Matching rule (NameDateMatcher):
- Names are NFC-normalized, stripped of all whitespace and lowercased,
  then compared for exact equality. No edit distance.
- Dates match when equal or at most `tolerance_days` apart (default 1).
  The tolerance absorbs all-day entries that land on the adjacent day
  after upstream timezone truncation.

KNOWN RISK: the tolerance is symmetric and applies to timed events too,
so two same-named events genuinely one day apart are treated as one and
the external copy is hidden. This over-suppression is kept as-is.

Duplicates are dropped, never merged or annotated. Nothing is persisted;
the decision is recomputed on every read.
"""

import re
import unicodedata
from abc import ABC, abstractmethod
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from lifeledger.models.event import UnifiedEvent
from lifeledger.normalization.dates import parse_calendar_date


DEFAULT_TOLERANCE_DAYS = 1

_WHITESPACE = re.compile(r"\s+")

logger = structlog.get_logger(__name__)


def normalize_event_name(name: Optional[str]) -> str:
    """Canonical composition, no whitespace, lowercase."""
    return _WHITESPACE.sub("", unicodedata.normalize("NFC", name or "")).lower()


class EventMatcher(ABC):
    """
    Decides whether an external event duplicates an internal one.

    Swap in a stricter matcher without touching the day index builder.
    """

    @abstractmethod
    def is_duplicate(self, internal: UnifiedEvent, external: UnifiedEvent) -> bool:
        pass


class NameDateMatcher(EventMatcher):
    """Exact normalized-name match plus a small date tolerance."""

    def __init__(self, tolerance_days: int = DEFAULT_TOLERANCE_DAYS):
        self.tolerance_days = tolerance_days

    def names_match(self, a: UnifiedEvent, b: UnifiedEvent) -> bool:
        return normalize_event_name(a.name) == normalize_event_name(b.name)

    def dates_match(self, a: UnifiedEvent, b: UnifiedEvent) -> bool:
        if a.date == b.date:
            return True
        first, second = parse_calendar_date(a.date), parse_calendar_date(b.date)
        if first is None or second is None:
            return False
        return abs((first - second).days) <= self.tolerance_days

    def is_duplicate(self, internal: UnifiedEvent, external: UnifiedEvent) -> bool:
        return self.names_match(internal, external) and self.dates_match(internal, external)


class DedupResult(BaseModel):
    """Events to show plus the external entries that were hidden."""

    events: list[UnifiedEvent] = Field(default_factory=list)
    suppressed: list[UnifiedEvent] = Field(default_factory=list)

    @property
    def suppressed_count(self) -> int:
        return len(self.suppressed)


class Deduplicator:
    """
    Merges internal events with the non-duplicate external ones.

    O(n*m) over internal x external. Both sides are bounded to one user's
    calendar window, so this stays small.
    """

    def __init__(self, matcher: Optional[EventMatcher] = None):
        self._matcher = matcher or NameDateMatcher()

    def run(self, internal: list[UnifiedEvent], external: list[UnifiedEvent]) -> DedupResult:
        kept = []
        suppressed = []
        for ext in external:
            if any(self._matcher.is_duplicate(item, ext) for item in internal):
                suppressed.append(ext)
            else:
                kept.append(ext)

        if suppressed:
            logger.debug(
                "external_duplicates_suppressed",
                suppressed=len(suppressed),
                external_total=len(external),
            )

        return DedupResult(events=[*internal, *kept], suppressed=suppressed)


def dedupe(
    internal: list[UnifiedEvent],
    external: list[UnifiedEvent],
    matcher: Optional[EventMatcher] = None,
) -> list[UnifiedEvent]:
    """Return `internal` unchanged followed by the external events kept."""
    return Deduplicator(matcher).run(internal, external).events
