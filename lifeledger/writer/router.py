"""
Unified Writer

Routes a user-entered FormInput to the store that owns it:

    ceremony / schedule / todo        -> events
    expense, income group             -> ledger (category 수입, group income)
    expense, any other group          -> ledger (resolved category and group)
    update of a bank_transactions row -> bank_transactions
    anything on an external record    -> ReadOnlySource

DESIGN DECISION: Every check that can fail without I/O (read-only source,
date validity, routing) runs before the first store call, so a rejected
write never leaves a partial row behind.

Recurring ceremonies are the one multi-row write. Occurrences are inserted
one at a time and are NOT transactional; a failure partway raises
PartialRecurrenceFailure with the failing index and the rows already in
the store. Schedules and todos keep their repeat rule on a single row.
"""

import asyncio
from datetime import date
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog
from dateutil.relativedelta import relativedelta

from lifeledger.audit import AuditLogger, create_correlation_id
from lifeledger.categories import classify_merchant, resolve_group
from lifeledger.models.event import (
    CategoryGroup,
    EventCategory,
    EventSource,
    FormInput,
    RecurrenceRule,
    StoreTable,
    UnifiedEvent,
    WriteMode,
    WriteResult,
)
from lifeledger.normalization import PAID_MARKER, extract_clock_time, parse_calendar_date
from lifeledger.services.storage import RecordStoreInterface, StorageError
from lifeledger.validation import FormValidator
from lifeledger.writer.errors import (
    InvalidDate,
    PartialRecurrenceFailure,
    ReadOnlySource,
    UnknownWriteRoute,
)


# Maximum occurrences generated per recurrence granularity
RECURRENCE_LIMITS: dict[RecurrenceRule, int] = {
    RecurrenceRule.DAILY: 30,
    RecurrenceRule.WEEKLY: 20,
    RecurrenceRule.MONTHLY: 12,
    RecurrenceRule.YEARLY: 5,
}

RECURRENCE_STEPS: dict[RecurrenceRule, relativedelta] = {
    RecurrenceRule.DAILY: relativedelta(days=1),
    RecurrenceRule.WEEKLY: relativedelta(weeks=1),
    RecurrenceRule.MONTHLY: relativedelta(months=1),
    RecurrenceRule.YEARLY: relativedelta(years=1),
}

INCOME_CATEGORY = "수입"

logger = structlog.get_logger(__name__)


def occurrence_dates(start: date, rule: RecurrenceRule) -> list[date]:
    """
    Dates of a recurring series, starting with `start`.

    Each date is computed from `start` (not from the previous occurrence),
    so 01-31 monthly gives 02-28, 03-31, 04-30 rather than drifting to the 28th.
    """
    if rule == RecurrenceRule.NONE:
        return [start]
    step = RECURRENCE_STEPS[rule]
    return [start + step * i for i in range(RECURRENCE_LIMITS[rule])]


def with_paid_marker(memo: Optional[str]) -> str:
    """Append the paid tag to a memo unless it is already there."""
    memo = (memo or "").strip()
    if PAID_MARKER in memo:
        return memo
    return f"{memo} {PAID_MARKER}".strip()


class UnifiedWriter:
    """
    Persists form submissions into the events, ledger and bank stores.

    Usage:
        writer = UnifiedWriter(store, user_id="u1")
        result = await writer.write(form, WriteMode.CREATE)
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        user_id: str,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[FormValidator] = None,
    ):
        self._store = store
        self._user_id = user_id
        self._audit_logger = audit_logger
        self._validator = validator or FormValidator()

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    def resolve_table(
        self,
        form: FormInput,
        mode: WriteMode,
        existing: Optional[UnifiedEvent] = None,
    ) -> StoreTable:
        """
        Pick the store a submission belongs to.

        Raises:
            UnknownWriteRoute: If no routing rule matches
        """
        category = form.category or EventCategory.CEREMONY
        source = existing.source if existing else None

        if mode == WriteMode.CREATE:
            if category == EventCategory.EXPENSE:
                return StoreTable.LEDGER
            return StoreTable.EVENTS

        if source == EventSource.BANK_TRANSACTIONS:
            return StoreTable.BANK_TRANSACTIONS
        if source == EventSource.LEDGER and category == EventCategory.EXPENSE:
            return StoreTable.LEDGER
        if source == EventSource.EVENTS and category != EventCategory.EXPENSE:
            return StoreTable.EVENTS

        raise UnknownWriteRoute(
            category=form.category.value if form.category else None,
            source=source.value if source else None,
            mode=mode.value,
        )

    @staticmethod
    def is_income(form: FormInput, existing: Optional[UnifiedEvent] = None) -> bool:
        if form.category_group is not None:
            return form.category_group == CategoryGroup.INCOME
        if form.is_received:
            return True
        if form.ledger_category:
            return resolve_group(form.ledger_category) == CategoryGroup.INCOME
        if existing is not None and "is_received" not in form.model_fields_set:
            return existing.is_received
        return False

    # -------------------------------------------------------------------------
    # Row shapes
    # -------------------------------------------------------------------------

    def _events_fields(
        self,
        form: FormInput,
        on: date,
        existing: Optional[UnifiedEvent] = None,
    ) -> dict[str, Any]:
        category = form.category or EventCategory.CEREMONY
        memo = with_paid_marker(form.memo) if form.is_paid else form.memo
        fields = {
            "type": form.type,
            "category": category.value,
            "name": form.name,
            "event_date": on.isoformat(),
            "start_time": None if form.is_all_day else extract_clock_time(form.start_time),
            "end_time": None if form.is_all_day else extract_clock_time(form.end_time),
            "is_all_day": form.is_all_day,
            "location": form.location,
            "memo": memo,
            "amount": form.amount,
            "is_received": form.is_received,
            "relation": form.relation,
            "is_completed": form.is_completed,
            "recurrence_rule": form.recurrence.value,
            "alarm_minutes": form.alarm_minutes,
        }
        if existing is None:
            return fields

        # An edit writes only the columns the caller supplied
        given = set(form.model_fields_set)
        if form.is_all_day:
            given |= {"start_time", "end_time"}
        if given & {"memo", "is_paid"}:
            base = form.memo if "memo" in given else existing.memo
            paid = form.is_paid if "is_paid" in given else existing.is_paid
            fields["memo"] = with_paid_marker(base) if paid else base
            given.add("memo")
        columns = {"event_date"} | given
        return {column: value for column, value in fields.items() if column in columns}

    def _ledger_fields(
        self,
        form: FormInput,
        on: date,
        existing: Optional[UnifiedEvent] = None,
    ) -> dict[str, Any]:
        given = form.model_fields_set
        name = form.name
        kept_category = None
        if existing is not None:
            if "name" not in given:
                name = existing.name
            kept_category = existing.relation

        if self.is_income(form, existing):
            category = INCOME_CATEGORY
            group = CategoryGroup.INCOME
        else:
            if kept_category and resolve_group(kept_category) == CategoryGroup.INCOME:
                kept_category = None
            category = form.ledger_category or kept_category or classify_merchant(name)
            group = form.category_group or resolve_group(category)
        fields = {
            "transaction_date": on.isoformat(),
            "amount": form.amount,
            "merchant_name": form.name,
            "category": category,
            "sub_category": form.sub_category,
            "category_group": group.value,
            "memo": form.memo,
        }
        if existing is None:
            return fields

        columns = {"transaction_date", "category", "category_group"}
        if "name" in given:
            columns.add("merchant_name")
        columns |= given & {"amount", "sub_category", "memo"}
        return {column: value for column, value in fields.items() if column in columns}

    def _bank_fields(self, form: FormInput, on: date, existing: UnifiedEvent) -> dict[str, Any]:
        given = form.model_fields_set
        transaction_type = form.transaction_type
        if transaction_type is None:
            transaction_type = "deposit" if existing.is_received else "withdrawal"
        fields = {
            "transaction_date": on.isoformat(),
            "transaction_type": transaction_type,
        }
        if "amount" in given:
            fields["amount"] = form.amount
        if "memo" in given:
            fields["memo"] = form.memo
        if form.ledger_category:
            fields["category"] = form.ledger_category
        if form.sub_category:
            fields["sub_category"] = form.sub_category
        if form.name:
            counterpart = "sender_name" if transaction_type == "deposit" else "receiver_name"
            fields[counterpart] = form.name
        return fields

    def build_fields(
        self,
        table: StoreTable,
        form: FormInput,
        on: date,
        existing: Optional[UnifiedEvent] = None,
    ) -> dict[str, Any]:
        """
        Column values for one row of `table`.

        With `existing` (an edit) only the columns backed by fields the
        caller set are returned, so the rest of the stored row is kept.
        """
        if table == StoreTable.EVENTS:
            return self._events_fields(form, on, existing)
        if table == StoreTable.LEDGER:
            return self._ledger_fields(form, on, existing)
        return self._bank_fields(form, on, existing)

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def _reject_read_only(
        self,
        event: Optional[UnifiedEvent],
        operation: str,
        correlation_id: UUID,
    ) -> None:
        if event is None or not event.is_external:
            return
        if self._audit_logger:
            await self._audit_logger.log_read_only_rejected(
                event_id=event.id,
                operation=operation,
                correlation_id=correlation_id,
            )
        raise ReadOnlySource(event.id, operation)

    async def _validated_date(self, form: FormInput, correlation_id: UUID) -> date:
        result = self._validator.validate(form)
        if result.warnings:
            logger.info("form_warnings", warnings=result.warnings)

        parsed = parse_calendar_date(form.date)
        if not result.is_valid or parsed is None:
            if self._audit_logger:
                await self._audit_logger.log_invalid_date(
                    value=form.date,
                    correlation_id=correlation_id,
                )
            message = result.errors[0].message if result.errors else None
            raise InvalidDate(form.date, message)
        return parsed

    async def write(
        self,
        form: FormInput,
        mode: WriteMode,
        existing: Optional[UnifiedEvent] = None,
        correlation_id: Optional[UUID] = None,
    ) -> WriteResult:
        """
        Create or update the row(s) for a submission.

        Args:
            form: The submission
            mode: CREATE or UPDATE
            existing: The record being edited (required for UPDATE)

        Returns:
            WriteResult naming the table and the IDs touched

        Raises:
            ReadOnlySource: `existing` is an external calendar entry
            InvalidDate: The date is empty or unparseable
            UnknownWriteRoute: No routing rule matches
            PartialRecurrenceFailure: A recurring series stopped partway
            StorageError: A single-row write failed
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._reject_read_only(existing, mode.value, correlation_id)
        on = await self._validated_date(form, correlation_id)

        try:
            table = self.resolve_table(form, mode, existing)
        except UnknownWriteRoute as e:
            if self._audit_logger:
                await self._audit_logger.log_route_rejected(
                    category=e.category,
                    source=e.source,
                    mode=e.mode,
                    correlation_id=correlation_id,
                )
            raise

        if mode == WriteMode.UPDATE:
            return await self._update(table, form, on, existing, correlation_id)

        if (
            table == StoreTable.EVENTS
            and (form.category or EventCategory.CEREMONY) == EventCategory.CEREMONY
            and form.recurrence != RecurrenceRule.NONE
        ):
            return await self._create_series(form, on, correlation_id)

        row = {"user_id": self._user_id, **self.build_fields(table, form, on)}
        try:
            record_id = await self._store.insert(table, row)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    table=table.value,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_saved(
                table=table.value,
                record_ids=[record_id],
                correlation_id=correlation_id,
            )
        return WriteResult(table=table, mode=mode, record_ids=[record_id])

    async def _update(
        self,
        table: StoreTable,
        form: FormInput,
        on: date,
        existing: UnifiedEvent,
        correlation_id: UUID,
    ) -> WriteResult:
        fields = self.build_fields(table, form, on, existing)
        if table == StoreTable.EVENTS:
            # An edit never re-expands or re-groups a series
            fields.pop("recurrence_rule", None)

        try:
            await self._store.update(table, existing.record_id, fields)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    table=table.value,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_updated(
                table=table.value,
                record_id=existing.record_id,
                fields=sorted(fields),
                correlation_id=correlation_id,
            )
        return WriteResult(
            table=table,
            mode=WriteMode.UPDATE,
            record_ids=[existing.record_id],
            group_id=existing.group_id,
        )

    async def _create_series(
        self,
        form: FormInput,
        start: date,
        correlation_id: UUID,
    ) -> WriteResult:
        """Insert one events row per occurrence, sharing a fresh group_id."""
        group_id = uuid4().hex
        dates = occurrence_dates(start, form.recurrence)
        inserted: list[str] = []

        for index, on in enumerate(dates):
            row = {
                "user_id": self._user_id,
                **self._events_fields(form, on),
                "group_id": group_id,
            }
            try:
                inserted.append(await self._store.insert(StoreTable.EVENTS, row))
            except asyncio.CancelledError:
                logger.warning(
                    "recurrence_cancelled",
                    group_id=group_id,
                    inserted=len(inserted),
                    total=len(dates),
                )
                raise
            except StorageError as e:
                if self._audit_logger:
                    await self._audit_logger.log_recurrence_failure(
                        group_id=group_id,
                        failed_index=index,
                        total=len(dates),
                        inserted_ids=inserted,
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )
                raise PartialRecurrenceFailure(
                    failed_index=index,
                    total=len(dates),
                    inserted_ids=inserted,
                    group_id=group_id,
                    cause=e,
                ) from e

        if self._audit_logger:
            await self._audit_logger.log_saved(
                table=StoreTable.EVENTS.value,
                record_ids=inserted,
                correlation_id=correlation_id,
                group_id=group_id,
            )
        return WriteResult(
            table=StoreTable.EVENTS,
            mode=WriteMode.CREATE,
            record_ids=inserted,
            group_id=group_id,
        )

    async def delete(
        self,
        event: UnifiedEvent,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete the stored row behind an event.

        Raises:
            ReadOnlySource: The event comes from the external calendar
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._reject_read_only(event, "delete", correlation_id)

        table = StoreTable(event.source.value)
        deleted = await self._store.delete(table, event.record_id)

        if deleted and self._audit_logger:
            await self._audit_logger.log_deleted(
                table=table.value,
                record_id=event.record_id,
                correlation_id=correlation_id,
            )
        return deleted

    async def _update_events_row(
        self,
        event: UnifiedEvent,
        operation: str,
        fields: dict[str, Any],
        correlation_id: Optional[UUID],
    ) -> bool:
        correlation_id = correlation_id or create_correlation_id()
        await self._reject_read_only(event, operation, correlation_id)

        if event.source != EventSource.EVENTS:
            raise UnknownWriteRoute(
                category=event.category.value if event.category else None,
                source=event.source.value,
                mode=operation,
            )

        await self._store.update(StoreTable.EVENTS, event.record_id, fields)
        if self._audit_logger:
            await self._audit_logger.log_updated(
                table=StoreTable.EVENTS.value,
                record_id=event.record_id,
                fields=sorted(fields),
                correlation_id=correlation_id,
            )
        return True

    async def set_completed(
        self,
        event: UnifiedEvent,
        done: bool = True,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Toggle the completion flag of a todo (or any events row)."""
        return await self._update_events_row(
            event, "complete", {"is_completed": done}, correlation_id
        )

    async def mark_paid(
        self,
        event: UnifiedEvent,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Tag a ceremony as paid by appending the paid marker to its memo."""
        return await self._update_events_row(
            event, "mark_paid", {"memo": with_paid_marker(event.memo)}, correlation_id
        )
