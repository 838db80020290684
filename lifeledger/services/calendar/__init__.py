"""External (read-only) calendar providers."""

from lifeledger.services.calendar.provider import (
    CalendarProviderError,
    ExternalCalendarProvider,
    StaticCalendarProvider,
)

__all__ = [
    "CalendarProviderError",
    "ExternalCalendarProvider",
    "StaticCalendarProvider",
]
