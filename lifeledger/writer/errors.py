"""
Write-side errors.

Only the writer's I/O boundary raises hard errors; the read pipeline
degrades instead.
"""

from typing import Optional


class WriteError(Exception):
    """Base class for failed writes."""
    pass


class ReadOnlySource(WriteError):
    """Attempted mutation of an externally sourced record."""

    def __init__(self, event_id: str, operation: str):
        self.event_id = event_id
        self.operation = operation
        super().__init__(f"Cannot {operation} {event_id}: external calendar entries are read-only")


class InvalidDate(WriteError):
    """Empty or unparseable date on a write. Raised before any I/O."""

    def __init__(self, value: Optional[str], message: Optional[str] = None):
        self.value = value
        super().__init__(message or f"Invalid date: {value!r}")


class UnknownWriteRoute(WriteError):
    """The (category, source) combination matches no routing rule."""

    def __init__(self, category: Optional[str], source: Optional[str], mode: str):
        self.category = category
        self.source = source
        self.mode = mode
        super().__init__(
            f"No write route for category={category!r} source={source!r} mode={mode}"
        )


class PartialRecurrenceFailure(WriteError):
    """
    Occurrence `failed_index` of `total` could not be inserted.

    Occurrences before it stay in the store; their IDs are in
    `inserted_ids`. Cleanup is the caller's decision.
    """

    def __init__(
        self,
        failed_index: int,
        total: int,
        inserted_ids: list[str],
        group_id: str,
        cause: Optional[BaseException] = None,
    ):
        self.failed_index = failed_index
        self.total = total
        self.inserted_ids = list(inserted_ids)
        self.group_id = group_id
        self.cause = cause
        super().__init__(
            f"Recurrence {group_id} failed at occurrence {failed_index} of {total} "
            f"({len(self.inserted_ids)} inserted): {cause}"
        )
