"""
External Calendar Provider

The device/external calendar is a read-only feed. Providers return entries
for a date range, optionally limited to a set of calendar IDs.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from lifeledger.models.event import ExternalCalendarEntry
from lifeledger.normalization.dates import parse_calendar_date


class CalendarProviderError(Exception):
    """The external calendar could not be read."""
    pass


class ExternalCalendarProvider(ABC):
    """Read-only access to an external calendar."""

    @abstractmethod
    async def get_entries(
        self,
        start: date,
        end: date,
        calendar_ids: Optional[list[str]] = None,
    ) -> list[ExternalCalendarEntry]:
        """
        Entries starting within [start, end].

        Args:
            start: First day of the window
            end: Last day of the window
            calendar_ids: Limit to these calendars (None = all)

        Raises:
            CalendarProviderError: If the calendar cannot be read
        """
        pass


class StaticCalendarProvider(ExternalCalendarProvider):
    """Serves a fixed list of entries (imports, fixtures)."""

    def __init__(self, entries: Optional[list[ExternalCalendarEntry]] = None):
        self._entries = list(entries or [])

    async def get_entries(
        self,
        start: date,
        end: date,
        calendar_ids: Optional[list[str]] = None,
    ) -> list[ExternalCalendarEntry]:
        selected = []
        for entry in self._entries:
            if calendar_ids and entry.calendar_id not in calendar_ids:
                continue
            entry_date = parse_calendar_date(entry.start_date)
            # Unparseable entries pass through; the normalizer drops them
            if entry_date is not None and not (start <= entry_date <= end):
                continue
            selected.append(entry)
        return selected
