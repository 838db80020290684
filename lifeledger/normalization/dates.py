"""
Calendar date helpers.

Dates are opaque calendar dates: "2026-03-10T23:30:00+09:00" belongs to
2026-03-10, full stop. Nothing here converts between timezones.
"""

import re
from datetime import date, datetime
from typing import Any, Optional

_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})")


def extract_calendar_date(value: Any) -> Optional[str]:
    """
    Return the YYYY-MM-DD calendar date of a stored value, or None.

    Accepts date/datetime objects and strings such as "2026-03-10",
    "2026-03-10T09:00:00Z" or "2026-03-10 18:35".
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None

    text = value.strip()
    head = re.split(r"[T ]", text, maxsplit=1)[0]
    if not _DATE_PATTERN.match(head):
        return None
    try:
        date.fromisoformat(head)
    except ValueError:
        return None
    return head


def parse_calendar_date(value: Any) -> Optional[date]:
    """Parse a stored value into a date, or None when it is not one."""
    text = extract_calendar_date(value)
    if text is None:
        return None
    return date.fromisoformat(text)


def extract_clock_time(value: Any) -> Optional[str]:
    """
    Return HH:MM from "14:30", "14:30:00" or an ISO datetime string.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if "T" in text:
        text = text.split("T", 1)[1]
    match = _TIME_PATTERN.match(text)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"
