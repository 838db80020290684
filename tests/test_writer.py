"""
Tests for the unified writer.

Stores are in-memory; no network calls.
"""

from datetime import date, timedelta

import pytest

from lifeledger.audit import AuditLogger
from lifeledger.models.audit import AuditEventType
from lifeledger.models.event import (
    CategoryGroup,
    EventCategory,
    EventSource,
    FormInput,
    RecurrenceRule,
    StoreTable,
    UnifiedEvent,
    WriteMode,
)
from lifeledger.normalization import PAID_MARKER, EventNormalizer
from lifeledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryRecordStore,
    StorageError,
)
from lifeledger.writer import (
    InvalidDate,
    PartialRecurrenceFailure,
    ReadOnlySource,
    UnifiedWriter,
    UnknownWriteRoute,
    occurrence_dates,
    with_paid_marker,
)


USER_ID = "user-1"


class SpyStore(InMemoryRecordStore):
    """In-memory store that records every call."""

    def __init__(self):
        super().__init__()
        self.calls: list[str] = []

    async def insert(self, table, row):
        self.calls.append("insert")
        return await super().insert(table, row)

    async def update(self, table, record_id, fields):
        self.calls.append("update")
        return await super().update(table, record_id, fields)

    async def delete(self, table, record_id):
        self.calls.append("delete")
        return await super().delete(table, record_id)


class FailingStore(InMemoryRecordStore):
    """Fails the insert with the given zero-based index."""

    def __init__(self, fail_at: int):
        super().__init__()
        self._fail_at = fail_at
        self._inserts = 0

    async def insert(self, table, row):
        index = self._inserts
        self._inserts += 1
        if index == self._fail_at:
            raise StorageError("quota exceeded")
        return await super().insert(table, row)


def stored_event(record_id: str, source: EventSource, **fields) -> UnifiedEvent:
    fields.setdefault("date", "2026-03-10")
    return UnifiedEvent(
        id=f"{source.value}:{record_id}",
        record_id=record_id,
        source=source,
        **fields,
    )


@pytest.fixture
def store():
    return SpyStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def writer(store, audit_storage):
    return UnifiedWriter(store, USER_ID, audit_logger=AuditLogger(audit_storage))


class TestRecurrenceDates:
    """Tests for occurrence date generation."""

    def test_weekly_series(self):
        """Test twenty weekly dates."""
        dates = occurrence_dates(date(2026, 1, 5), RecurrenceRule.WEEKLY)
        assert len(dates) == 20
        assert dates[:3] == [date(2026, 1, 5), date(2026, 1, 12), date(2026, 1, 19)]

    @pytest.mark.parametrize("rule,count", [
        (RecurrenceRule.NONE, 1),
        (RecurrenceRule.DAILY, 30),
        (RecurrenceRule.WEEKLY, 20),
        (RecurrenceRule.MONTHLY, 12),
        (RecurrenceRule.YEARLY, 5),
    ])
    def test_caps(self, rule, count):
        """Test the per-granularity occurrence caps."""
        assert len(occurrence_dates(date(2026, 1, 1), rule)) == count

    def test_month_end_is_clamped(self):
        """Test that monthly steps clamp to the end of shorter months."""
        dates = occurrence_dates(date(2026, 1, 31), RecurrenceRule.MONTHLY)
        assert dates[1] == date(2026, 2, 28)
        assert dates[2] == date(2026, 3, 31)
        assert dates[3] == date(2026, 4, 30)

    def test_leap_day_yearly(self):
        """Test yearly recurrence from Feb 29."""
        dates = occurrence_dates(date(2028, 2, 29), RecurrenceRule.YEARLY)
        assert dates[1] == date(2029, 2, 28)
        assert dates[4] == date(2032, 2, 29)


class TestCreateRouting:
    """Tests for routing new submissions."""

    @pytest.mark.asyncio
    async def test_ceremony_goes_to_events(self, writer, store):
        """Test a one-off ceremony."""
        form = FormInput(
            category=EventCategory.CEREMONY,
            type="wedding",
            name="민수 결혼식",
            date="2026-04-18",
            start_time="12:30",
            amount=50000,
            relation="친구",
        )

        result = await writer.write(form, WriteMode.CREATE)

        assert result.table == StoreTable.EVENTS
        rows = store.rows(StoreTable.EVENTS)
        assert len(rows) == 1
        row = rows[0]
        assert row["id"] == result.record_ids[0]
        assert row["user_id"] == USER_ID
        assert row["category"] == "ceremony"
        assert row["type"] == "wedding"
        assert row["event_date"] == "2026-04-18"
        assert row["start_time"] == "12:30"
        assert row["amount"] == 50000

    @pytest.mark.asyncio
    async def test_missing_category_is_ceremony(self, writer, store):
        """Test that an untagged submission is stored as a ceremony."""
        await writer.write(FormInput(name="돌잔치", date="2026-04-18"), WriteMode.CREATE)
        assert store.rows(StoreTable.EVENTS)[0]["category"] == "ceremony"

    @pytest.mark.asyncio
    async def test_all_day_drops_times(self, writer, store):
        """Test that all-day submissions store no times."""
        form = FormInput(
            category=EventCategory.SCHEDULE,
            name="워크숍",
            date="2026-04-18",
            start_time="09:00",
            is_all_day=True,
        )
        await writer.write(form, WriteMode.CREATE)
        row = store.rows(StoreTable.EVENTS)[0]
        assert row["start_time"] is None
        assert row["is_all_day"] is True

    @pytest.mark.asyncio
    async def test_paid_ceremony_tags_memo(self, writer, store):
        """Test that a paid ceremony carries the paid marker."""
        form = FormInput(
            category=EventCategory.CEREMONY,
            name="조문",
            date="2026-04-18",
            memo="부의금",
            is_paid=True,
        )
        await writer.write(form, WriteMode.CREATE)
        assert store.rows(StoreTable.EVENTS)[0]["memo"] == f"부의금 {PAID_MARKER}"

    @pytest.mark.asyncio
    async def test_expense_is_classified(self, writer, store):
        """Test that an expense without a category is classified from its name."""
        form = FormInput(
            category=EventCategory.EXPENSE,
            name="스타벅스 강남점",
            date="2026-05-01",
            amount=4500,
        )

        result = await writer.write(form, WriteMode.CREATE)

        assert result.table == StoreTable.LEDGER
        row = store.rows(StoreTable.LEDGER)[0]
        assert row["category"] == "식비"
        assert row["category_group"] == "variable_expense"
        assert row["merchant_name"] == "스타벅스 강남점"
        assert row["transaction_date"] == "2026-05-01"

    @pytest.mark.asyncio
    async def test_explicit_category_wins(self, writer, store):
        """Test that a chosen ledger category is kept."""
        form = FormInput(
            category=EventCategory.EXPENSE,
            name="스타벅스",
            date="2026-05-01",
            amount=4500,
            ledger_category="주거/통신/광열",
        )
        await writer.write(form, WriteMode.CREATE)
        row = store.rows(StoreTable.LEDGER)[0]
        assert row["category"] == "주거/통신/광열"
        assert row["category_group"] == "fixed_expense"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("extra", [
        {"is_received": True},
        {"category_group": CategoryGroup.INCOME},
        {"ledger_category": "용돈"},
    ])
    async def test_income_is_tagged(self, writer, store, extra):
        """Test the three ways an expense-form submission becomes income."""
        form = FormInput(
            category=EventCategory.EXPENSE,
            name="월급",
            date="2026-05-25",
            amount=3000000,
            **extra,
        )
        await writer.write(form, WriteMode.CREATE)
        row = store.rows(StoreTable.LEDGER)[0]
        assert row["category"] == "수입"
        assert row["category_group"] == "income"

    @pytest.mark.asyncio
    async def test_schedule_keeps_rule_on_one_row(self, writer, store):
        """Test that recurring schedules are not expanded."""
        form = FormInput(
            category=EventCategory.SCHEDULE,
            name="요가",
            date="2026-01-05",
            recurrence=RecurrenceRule.WEEKLY,
        )
        result = await writer.write(form, WriteMode.CREATE)
        rows = store.rows(StoreTable.EVENTS)
        assert len(rows) == 1
        assert rows[0]["recurrence_rule"] == "weekly"
        assert result.group_id is None

    @pytest.mark.asyncio
    async def test_save_is_audited(self, writer, audit_storage):
        """Test that a successful write leaves an audit event."""
        await writer.write(FormInput(name="x", date="2026-04-18"), WriteMode.CREATE)
        events = await audit_storage.get_recent_events()
        assert [e.event_type for e in events] == [AuditEventType.EVENT_SAVED]
        assert events[0].entity_type == "events"


class TestRecurringCeremony:
    """Tests for series expansion of recurring ceremonies."""

    @pytest.mark.asyncio
    async def test_weekly_expansion(self, writer, store):
        """Test twenty weekly rows sharing one group."""
        form = FormInput(
            category=EventCategory.CEREMONY,
            type="birthday",
            name="할머니 생신",
            date="2026-01-05",
            recurrence=RecurrenceRule.WEEKLY,
        )

        result = await writer.write(form, WriteMode.CREATE)

        rows = store.rows(StoreTable.EVENTS)
        assert len(rows) == 20
        assert len(result.record_ids) == 20
        assert result.group_id
        assert {row["group_id"] for row in rows} == {result.group_id}

        start = date(2026, 1, 5)
        expected = [(start + timedelta(weeks=i)).isoformat() for i in range(20)]
        assert [row["event_date"] for row in rows] == expected
        assert expected[:3] == ["2026-01-05", "2026-01-12", "2026-01-19"]

    @pytest.mark.asyncio
    async def test_each_series_gets_its_own_group(self, writer):
        """Test that group IDs are not reused across series."""
        form = FormInput(name="x", date="2026-01-05", recurrence=RecurrenceRule.YEARLY)
        first = await writer.write(form, WriteMode.CREATE)
        second = await writer.write(form, WriteMode.CREATE)
        assert first.group_id != second.group_id

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_prior_rows(self, audit_storage):
        """Test that a mid-series failure reports the index and keeps earlier rows."""
        store = FailingStore(fail_at=3)
        writer = UnifiedWriter(store, USER_ID, audit_logger=AuditLogger(audit_storage))
        form = FormInput(name="모임", date="2026-01-05", recurrence=RecurrenceRule.WEEKLY)

        with pytest.raises(PartialRecurrenceFailure) as exc_info:
            await writer.write(form, WriteMode.CREATE)

        error = exc_info.value
        assert error.failed_index == 3
        assert error.total == 20
        assert len(error.inserted_ids) == 3
        assert isinstance(error.cause, StorageError)

        rows = store.rows(StoreTable.EVENTS)
        assert [row["id"] for row in rows] == error.inserted_ids
        assert {row["group_id"] for row in rows} == {error.group_id}

        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.RECURRENCE_PARTIAL_FAILURE
        assert events[0].details["failed_index"] == 3

    @pytest.mark.asyncio
    async def test_failure_on_first_occurrence(self):
        """Test a series that fails before anything is written."""
        writer = UnifiedWriter(FailingStore(fail_at=0), USER_ID)
        form = FormInput(name="모임", date="2026-01-05", recurrence=RecurrenceRule.DAILY)
        with pytest.raises(PartialRecurrenceFailure) as exc_info:
            await writer.write(form, WriteMode.CREATE)
        assert exc_info.value.failed_index == 0
        assert exc_info.value.inserted_ids == []

    @pytest.mark.asyncio
    async def test_single_row_failure_propagates(self):
        """Test that a non-recurring failure surfaces the storage error."""
        writer = UnifiedWriter(FailingStore(fail_at=0), USER_ID)
        with pytest.raises(StorageError):
            await writer.write(FormInput(name="x", date="2026-01-05"), WriteMode.CREATE)


class TestValidationBeforeIO:
    """Tests that rejected writes never touch a store."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_date", [None, "", "2026-13-01", "next friday", "2026/01/05"])
    async def test_invalid_date(self, writer, store, bad_date):
        """Test that bad dates fail before any I/O."""
        form = FormInput(name="x", date=bad_date, recurrence=RecurrenceRule.DAILY)
        with pytest.raises(InvalidDate):
            await writer.write(form, WriteMode.CREATE)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_invalid_date_is_audited(self, writer, audit_storage):
        """Test the audit trail for rejected dates."""
        with pytest.raises(InvalidDate):
            await writer.write(FormInput(name="x", date="bad"), WriteMode.CREATE)
        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.INVALID_DATE_REJECTED

    @pytest.mark.asyncio
    async def test_update_external_is_read_only(self, writer, store):
        """Test that editing an external entry is refused without I/O."""
        existing = stored_event("ext-1", EventSource.EXTERNAL, category=EventCategory.SCHEDULE)
        form = FormInput(category=EventCategory.SCHEDULE, name="x", date="2026-03-10")

        with pytest.raises(ReadOnlySource):
            await writer.write(form, WriteMode.UPDATE, existing=existing)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_delete_external_is_read_only(self, writer, store, audit_storage):
        """Test that deleting an external entry is refused without I/O."""
        existing = stored_event("ext-1", EventSource.EXTERNAL)

        with pytest.raises(ReadOnlySource) as exc_info:
            await writer.delete(existing)

        assert exc_info.value.event_id == "external:ext-1"
        assert store.calls == []
        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.READ_ONLY_REJECTED

    @pytest.mark.asyncio
    async def test_flag_changes_on_external_are_read_only(self, writer, store):
        """Test completion and paid toggles on external entries."""
        existing = stored_event("ext-1", EventSource.EXTERNAL)
        with pytest.raises(ReadOnlySource):
            await writer.set_completed(existing)
        with pytest.raises(ReadOnlySource):
            await writer.mark_paid(existing)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_update_without_existing_record(self, writer, store):
        """Test that updates need the record being edited."""
        with pytest.raises(UnknownWriteRoute):
            await writer.write(FormInput(name="x", date="2026-03-10"), WriteMode.UPDATE)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_ledger_record_with_event_category(self, writer, store, audit_storage):
        """Test that a ledger row cannot be rewritten as a ceremony."""
        existing = stored_event("l1", EventSource.LEDGER, category=EventCategory.EXPENSE)
        form = FormInput(category=EventCategory.CEREMONY, name="x", date="2026-03-10")

        with pytest.raises(UnknownWriteRoute):
            await writer.write(form, WriteMode.UPDATE, existing=existing)

        assert store.calls == []
        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.WRITE_ROUTE_REJECTED

    @pytest.mark.asyncio
    async def test_events_record_with_expense_category(self, writer, store):
        """Test that an events row cannot be rewritten as an expense."""
        existing = stored_event("e1", EventSource.EVENTS, category=EventCategory.CEREMONY)
        form = FormInput(category=EventCategory.EXPENSE, name="x", date="2026-03-10")
        with pytest.raises(UnknownWriteRoute):
            await writer.write(form, WriteMode.UPDATE, existing=existing)
        assert store.calls == []


class TestUpdatesAndDeletes:
    """Tests for edits of stored records."""

    @pytest.mark.asyncio
    async def test_update_events_row(self, writer, store):
        """Test editing a ceremony in place."""
        record_id = await store.insert(StoreTable.EVENTS, {
            "user_id": USER_ID, "category": "ceremony", "name": "old",
            "event_date": "2026-03-10", "group_id": "g1", "recurrence_rule": "weekly",
        })
        existing = stored_event(record_id, EventSource.EVENTS,
                                category=EventCategory.CEREMONY, group_id="g1")
        form = FormInput(category=EventCategory.CEREMONY, name="new", date="2026-03-12")

        result = await writer.write(form, WriteMode.UPDATE, existing=existing)

        assert result.table == StoreTable.EVENTS
        assert result.record_ids == [record_id]
        row = store.rows(StoreTable.EVENTS)[0]
        assert row["name"] == "new"
        assert row["event_date"] == "2026-03-12"
        # Series membership is untouched
        assert row["group_id"] == "g1"
        assert row["recurrence_rule"] == "weekly"

    @pytest.mark.asyncio
    async def test_update_bank_row(self, writer, store):
        """Test that bank transactions stay in their own store."""
        record_id = await store.insert(StoreTable.BANK_TRANSACTIONS, {
            "user_id": USER_ID, "transaction_date": "2026-03-10", "amount": 1000,
            "transaction_type": "deposit", "sender_name": "홍길동",
        })
        existing = stored_event(record_id, EventSource.BANK_TRANSACTIONS,
                                category=EventCategory.EXPENSE, is_received=True)
        form = FormInput(category=EventCategory.EXPENSE, name="홍길순", date="2026-03-11", amount=2000)

        result = await writer.write(form, WriteMode.UPDATE, existing=existing)

        assert result.table == StoreTable.BANK_TRANSACTIONS
        row = store.rows(StoreTable.BANK_TRANSACTIONS)[0]
        assert row["amount"] == 2000
        assert row["sender_name"] == "홍길순"
        assert row["transaction_type"] == "deposit"
        assert store.rows(StoreTable.LEDGER) == []

    @pytest.mark.asyncio
    async def test_update_ledger_row(self, writer, store, audit_storage):
        """Test editing a ledger row."""
        record_id = await store.insert(StoreTable.LEDGER, {
            "user_id": USER_ID, "transaction_date": "2026-03-10", "amount": 1000,
            "merchant_name": "편의점", "category": "식비",
        })
        existing = stored_event(record_id, EventSource.LEDGER, category=EventCategory.EXPENSE)
        form = FormInput(category=EventCategory.EXPENSE, name="다이소", date="2026-03-10", amount=3000)

        await writer.write(form, WriteMode.UPDATE, existing=existing)

        row = store.rows(StoreTable.LEDGER)[0]
        assert row["category"] == "쇼핑/생활"
        assert row["amount"] == 3000
        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.EVENT_UPDATED

    @pytest.mark.asyncio
    async def test_ledger_edit_keeps_income(self, writer, store):
        """Test that a memo edit leaves an income row's direction and category alone."""
        record_id = await store.insert(StoreTable.LEDGER, {
            "user_id": USER_ID, "transaction_date": "2026-03-25", "amount": 3000000,
            "merchant_name": "월급", "category": "수입", "category_group": "income",
        })
        existing = EventNormalizer().normalize(store.rows(StoreTable.LEDGER)[0], EventSource.LEDGER)
        assert existing.is_received is True

        form = FormInput(category=EventCategory.EXPENSE, date="2026-03-25", memo="3월분")
        await writer.write(form, WriteMode.UPDATE, existing=existing)

        row = store.rows(StoreTable.LEDGER)[0]
        assert row["id"] == record_id
        assert row["category"] == "수입"
        assert row["category_group"] == "income"
        assert row["amount"] == 3000000
        assert row["merchant_name"] == "월급"
        assert row["memo"] == "3월분"
        assert EventNormalizer().normalize(row, EventSource.LEDGER).is_received is True

    @pytest.mark.asyncio
    async def test_ledger_edit_keeps_chosen_category(self, writer, store):
        """Test that a manually chosen category survives an amount edit."""
        await store.insert(StoreTable.LEDGER, {
            "user_id": USER_ID, "transaction_date": "2026-03-10", "amount": 4500,
            "merchant_name": "스타벅스", "category": "주거/통신/광열",
        })
        existing = EventNormalizer().normalize(store.rows(StoreTable.LEDGER)[0], EventSource.LEDGER)

        form = FormInput(category=EventCategory.EXPENSE, date="2026-03-10", amount=5000)
        await writer.write(form, WriteMode.UPDATE, existing=existing)

        row = store.rows(StoreTable.LEDGER)[0]
        assert row["category"] == "주거/통신/광열"
        assert row["category_group"] == "fixed_expense"
        assert row["amount"] == 5000

    @pytest.mark.asyncio
    async def test_ledger_income_can_become_expense(self, writer, store):
        """Test that an explicit is_received=False turns income into an expense."""
        await store.insert(StoreTable.LEDGER, {
            "user_id": USER_ID, "transaction_date": "2026-03-10", "amount": 4500,
            "merchant_name": "스타벅스", "category": "수입",
        })
        existing = EventNormalizer().normalize(store.rows(StoreTable.LEDGER)[0], EventSource.LEDGER)

        form = FormInput(category=EventCategory.EXPENSE, date="2026-03-10", is_received=False)
        await writer.write(form, WriteMode.UPDATE, existing=existing)

        row = store.rows(StoreTable.LEDGER)[0]
        assert row["category"] == "식비"
        assert row["category_group"] == "variable_expense"

    @pytest.mark.asyncio
    async def test_title_edit_keeps_other_columns(self, writer, store):
        """Test that renaming a completed todo keeps its flags and details."""
        await store.insert(StoreTable.EVENTS, {
            "user_id": USER_ID, "category": "todo", "name": "장보기",
            "event_date": "2026-03-10", "location": "마트", "alarm_minutes": 30,
            "relation": "가족", "memo": "우유",
        })
        existing = EventNormalizer().normalize(store.rows(StoreTable.EVENTS)[0], EventSource.EVENTS)
        await writer.set_completed(existing, True)

        form = FormInput(category=EventCategory.TODO, name="장보기 (주말)", date="2026-03-10")
        await writer.write(form, WriteMode.UPDATE, existing=existing)

        row = store.rows(StoreTable.EVENTS)[0]
        assert row["name"] == "장보기 (주말)"
        assert row["is_completed"] is True
        assert row["location"] == "마트"
        assert row["alarm_minutes"] == 30
        assert row["relation"] == "가족"
        assert row["memo"] == "우유"

    @pytest.mark.asyncio
    async def test_paid_edit_keeps_memo(self, writer, store):
        """Test that marking paid through an edit tags the stored memo."""
        await store.insert(StoreTable.EVENTS, {
            "user_id": USER_ID, "category": "ceremony", "name": "결혼식",
            "event_date": "2026-03-10", "memo": "축의금",
        })
        existing = EventNormalizer().normalize(store.rows(StoreTable.EVENTS)[0], EventSource.EVENTS)

        form = FormInput(date="2026-03-10", is_paid=True)
        await writer.write(form, WriteMode.UPDATE, existing=existing)

        row = store.rows(StoreTable.EVENTS)[0]
        assert row["memo"] == f"축의금 {PAID_MARKER}"
        assert row["name"] == "결혼식"
        assert row["category"] == "ceremony"

    @pytest.mark.asyncio
    async def test_untyped_todo_stores_no_type(self, writer, store):
        """Test that a todo created without a subtype keeps the type empty."""
        await writer.write(
            FormInput(category=EventCategory.TODO, name="장보기", date="2026-03-10"),
            WriteMode.CREATE,
        )
        assert store.rows(StoreTable.EVENTS)[0]["type"] is None

    @pytest.mark.asyncio
    async def test_delete_routes_by_source(self, writer, store):
        """Test that deletes hit the store named by the source."""
        record_id = await store.insert(StoreTable.LEDGER, {"user_id": USER_ID})
        existing = stored_event(record_id, EventSource.LEDGER)

        assert await writer.delete(existing) is True
        assert store.rows(StoreTable.LEDGER) == []

    @pytest.mark.asyncio
    async def test_set_completed(self, writer, store):
        """Test toggling a todo."""
        record_id = await store.insert(StoreTable.EVENTS, {"user_id": USER_ID, "category": "todo"})
        existing = stored_event(record_id, EventSource.EVENTS, category=EventCategory.TODO)

        await writer.set_completed(existing, True)

        assert store.rows(StoreTable.EVENTS)[0]["is_completed"] is True

    @pytest.mark.asyncio
    async def test_mark_paid(self, writer, store):
        """Test tagging a ceremony as paid."""
        record_id = await store.insert(StoreTable.EVENTS, {"user_id": USER_ID, "memo": "축의금"})
        existing = stored_event(record_id, EventSource.EVENTS,
                                category=EventCategory.CEREMONY, memo="축의금")

        await writer.mark_paid(existing)

        assert store.rows(StoreTable.EVENTS)[0]["memo"] == f"축의금 {PAID_MARKER}"

    @pytest.mark.asyncio
    async def test_set_completed_on_ledger_row(self, writer):
        """Test that completion flags only exist on events rows."""
        existing = stored_event("l1", EventSource.LEDGER, category=EventCategory.EXPENSE)
        with pytest.raises(UnknownWriteRoute):
            await writer.set_completed(existing)

    def test_paid_marker_is_not_duplicated(self):
        """Test that marking twice keeps one marker."""
        once = with_paid_marker("축의금")
        assert with_paid_marker(once) == once
        assert with_paid_marker(None) == PAID_MARKER
