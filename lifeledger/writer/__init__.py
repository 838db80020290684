"""Write-side routing of form submissions into the backing stores."""

from lifeledger.writer.errors import (
    InvalidDate,
    PartialRecurrenceFailure,
    ReadOnlySource,
    UnknownWriteRoute,
    WriteError,
)
from lifeledger.writer.router import (
    RECURRENCE_LIMITS,
    UnifiedWriter,
    occurrence_dates,
    with_paid_marker,
)

__all__ = [
    "InvalidDate",
    "PartialRecurrenceFailure",
    "ReadOnlySource",
    "RECURRENCE_LIMITS",
    "UnifiedWriter",
    "UnknownWriteRoute",
    "WriteError",
    "occurrence_dates",
    "with_paid_marker",
]
