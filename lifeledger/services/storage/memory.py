"""
In-Memory Storage Implementation

Keeps rows in process memory. Used by tests and local tooling; nothing
survives a restart.
"""

from datetime import date
from typing import Any, Optional
from uuid import UUID, uuid4

from lifeledger.models.audit import AuditEvent
from lifeledger.models.event import StoreTable
from lifeledger.normalization.dates import parse_calendar_date
from lifeledger.services.storage.interface import (
    DATE_COLUMNS,
    AuditStorageInterface,
    NotFoundError,
    RecordStoreInterface,
)


class InMemoryRecordStore(RecordStoreInterface):
    """Record store backed by one dict per collection."""

    def __init__(self):
        self._tables: dict[StoreTable, dict[str, dict[str, Any]]] = {
            table: {} for table in StoreTable
        }

    def rows(self, table: StoreTable) -> list[dict[str, Any]]:
        """Copies of every stored row, in insertion order."""
        return [dict(row) for row in self._tables[table].values()]

    async def insert(self, table: StoreTable, row: dict[str, Any]) -> str:
        record_id = str(row.get("id") or uuid4())
        self._tables[table][record_id] = {**row, "id": record_id}
        return record_id

    async def update(self, table: StoreTable, record_id: str, fields: dict[str, Any]) -> bool:
        existing = self._tables[table].get(record_id)
        if existing is None:
            raise NotFoundError(f"{table.value} row not found: {record_id}")
        existing.update({k: v for k, v in fields.items() if k != "id"})
        return True

    async def delete(self, table: StoreTable, record_id: str) -> bool:
        return self._tables[table].pop(record_id, None) is not None

    async def list_rows(
        self,
        table: StoreTable,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        date_column = DATE_COLUMNS[table]
        rows = []
        for row in self._tables[table].values():
            if row.get("user_id") != user_id:
                continue
            row_date = parse_calendar_date(row.get(date_column))
            # Undated rows are returned so the normalizer can count them
            if row_date is not None:
                if date_from and row_date < date_from:
                    continue
                if date_to and row_date > date_to:
                    continue
            rows.append(dict(row))
        return rows


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
