"""
Event Normalizer

Converts the persisted row shapes (events, ledger, bank_transactions) and
external calendar entries into UnifiedEvent.

DESIGN DECISION: This is the ONLY place allowed to know per-shape field
names. Everything downstream works on UnifiedEvent.

A row that cannot be normalized is dropped and counted. It is never merged
into another record and never raises out of this module.
"""

import math
from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional

import structlog
from pydantic import BaseModel, ValidationError

from lifeledger.models.event import EventCategory, EventSource, UnifiedEvent
from lifeledger.normalization.dates import extract_calendar_date, extract_clock_time


# Ledger categories that mean money came in
INCOME_LEDGER_CATEGORIES = frozenset({"수입", "입금"})

# Memo tag written when a ceremony gift has been sent
PAID_MARKER = "[송금완료]"

logger = structlog.get_logger(__name__)


class NormalizationSkip(Exception):
    """A raw record could not be normalized and was dropped."""

    def __init__(self, source: EventSource, record_id: Optional[str], reason: str):
        self.source = source
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"{source.value}:{record_id or '?'} skipped: {reason}")


def qualified_id(source: EventSource, record_id: str) -> str:
    """Source-qualified ID, unique across all stores."""
    return f"{source.value}:{record_id}"


def _as_bool(value: Any) -> bool:
    # Spreadsheet-backed stores hand booleans back as text
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "t")
    return bool(value)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class EventNormalizer:
    """
    Normalizes raw records into UnifiedEvent, counting what it drops.

    Create one per reconciliation pass; the skip counters are request-scoped.

    Usage:
        normalizer = EventNormalizer()
        events = normalizer.normalize_many(ledger_rows, EventSource.LEDGER)
        normalizer.skipped_total  # rows dropped so far
    """

    def __init__(self):
        self.skip_counts: Counter = Counter()
        self.skipped: list[NormalizationSkip] = []
        self._handlers: dict[EventSource, Callable[[dict], UnifiedEvent]] = {
            EventSource.EVENTS: self._from_events_row,
            EventSource.LEDGER: self._from_ledger_row,
            EventSource.BANK_TRANSACTIONS: self._from_bank_row,
            EventSource.EXTERNAL: self._from_external_entry,
        }

    @property
    def skipped_total(self) -> int:
        return sum(self.skip_counts.values())

    def normalize(self, raw: Any, source: EventSource) -> Optional[UnifiedEvent]:
        """
        Normalize one raw record.

        Returns None (and records the skip) when the record is malformed.
        """
        record_id = None
        try:
            row = self._as_mapping(raw, source)
            record_id = _text(row.get("id"))
            return self._handlers[source](row)
        except NormalizationSkip as skip:
            self._record_skip(skip)
        except (ValidationError, ValueError, TypeError) as e:
            self._record_skip(NormalizationSkip(source, record_id, str(e).splitlines()[0]))
        return None

    def normalize_many(self, rows: Iterable[Any], source: EventSource) -> list[UnifiedEvent]:
        """Normalize a batch, dropping the records that fail."""
        events = []
        for raw in rows or []:
            event = self.normalize(raw, source)
            if event is not None:
                events.append(event)
        return events

    def _record_skip(self, skip: NormalizationSkip) -> None:
        self.skip_counts[skip.source] += 1
        self.skipped.append(skip)
        logger.warning(
            "normalization_skipped",
            source=skip.source.value,
            record_id=skip.record_id,
            reason=skip.reason,
        )

    @staticmethod
    def _as_mapping(raw: Any, source: EventSource) -> Mapping:
        if isinstance(raw, BaseModel):
            return raw.model_dump()
        if isinstance(raw, Mapping):
            return raw
        raise NormalizationSkip(source, None, f"unsupported record type {type(raw).__name__}")

    @staticmethod
    def _require_id(row: Mapping, source: EventSource) -> str:
        record_id = _text(row.get("id"))
        if record_id is None:
            raise NormalizationSkip(source, None, "missing id")
        return record_id

    @staticmethod
    def _require_date(row: Mapping, column: str, source: EventSource, record_id: str) -> str:
        value = extract_calendar_date(row.get(column))
        if value is None:
            raise NormalizationSkip(source, record_id, f"invalid {column}: {row.get(column)!r}")
        return value

    @staticmethod
    def _amount(row: Mapping, source: EventSource, record_id: str) -> float:
        value = row.get("amount")
        if value is None or value == "":
            return 0.0
        try:
            amount = float(value)
        except (TypeError, ValueError):
            raise NormalizationSkip(source, record_id, f"invalid amount: {value!r}")
        if not math.isfinite(amount):
            raise NormalizationSkip(source, record_id, f"invalid amount: {value!r}")
        return amount

    # -------------------------------------------------------------------------
    # Per-shape mappings
    # -------------------------------------------------------------------------

    def _from_events_row(self, row: Mapping) -> UnifiedEvent:
        source = EventSource.EVENTS
        record_id = self._require_id(row, source)
        event_date = self._require_date(row, "event_date", source, record_id)

        raw_category = _text(row.get("category"))
        category = None
        if raw_category is not None:
            try:
                category = EventCategory(raw_category)
            except ValueError:
                raise NormalizationSkip(source, record_id, f"unknown category {raw_category!r}")

        memo = _text(row.get("memo"))
        return UnifiedEvent(
            id=qualified_id(source, record_id),
            record_id=record_id,
            source=source,
            category=category,
            type=_text(row.get("type")),
            name=_text(row.get("name")) or "",
            date=event_date,
            start_time=extract_clock_time(row.get("start_time")),
            end_time=extract_clock_time(row.get("end_time")),
            location=_text(row.get("location")),
            memo=memo,
            amount=self._amount(row, source, record_id),
            is_received=_as_bool(row.get("is_received")),
            is_paid=PAID_MARKER in (memo or ""),
            is_completed=_as_bool(row.get("is_completed")),
            relation=_text(row.get("relation")),
            group_id=_text(row.get("group_id")),
        )

    def _from_ledger_row(self, row: Mapping) -> UnifiedEvent:
        source = EventSource.LEDGER
        record_id = self._require_id(row, source)
        tx_date = self._require_date(row, "transaction_date", source, record_id)

        stored_category = _text(row.get("category"))
        is_received = stored_category in INCOME_LEDGER_CATEGORIES
        name = _text(row.get("merchant_name")) or "결제"
        return UnifiedEvent(
            id=qualified_id(source, record_id),
            record_id=record_id,
            source=source,
            category=EventCategory.EXPENSE,
            type="transfer" if is_received else "receipt",
            name=name,
            date=tx_date,
            memo=_text(row.get("memo")) or f"[가계부] {name}",
            # Sign comes from is_received, not from storage
            amount=abs(self._amount(row, source, record_id)),
            is_received=is_received,
            relation=stored_category,
        )

    def _from_bank_row(self, row: Mapping) -> UnifiedEvent:
        source = EventSource.BANK_TRANSACTIONS
        record_id = self._require_id(row, source)
        tx_date = self._require_date(row, "transaction_date", source, record_id)

        is_deposit = _text(row.get("transaction_type")) == "deposit"
        if is_deposit:
            name = _text(row.get("sender_name")) or "입금"
        else:
            name = _text(row.get("receiver_name")) or "송금"
        return UnifiedEvent(
            id=qualified_id(source, record_id),
            record_id=record_id,
            source=source,
            category=EventCategory.EXPENSE,
            type="transfer",
            name=name,
            date=tx_date,
            memo=_text(row.get("memo")),
            amount=abs(self._amount(row, source, record_id)),
            is_received=is_deposit,
            relation=_text(row.get("category")),
        )

    def _from_external_entry(self, row: Mapping) -> UnifiedEvent:
        source = EventSource.EXTERNAL
        record_id = self._require_id(row, source)
        start = row.get("start_date")
        start_date = self._require_date(row, "start_date", source, record_id)

        end = row.get("end_date")
        # All-day entries are date-only strings and carry no time
        start_time = extract_clock_time(start) if isinstance(start, str) and "T" in start else None
        end_time = extract_clock_time(end) if isinstance(end, str) and "T" in end else None

        return UnifiedEvent(
            id=qualified_id(source, record_id),
            record_id=record_id,
            source=source,
            category=EventCategory.SCHEDULE,
            type="schedule",
            name=_text(row.get("title")) or "",
            date=start_date,
            start_time=start_time,
            end_time=end_time,
            location=_text(row.get("location")),
            memo=_text(row.get("notes")),
            calendar_color=_text(row.get("color")),
        )
