"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is a workable datastore for one household:
1. Users can inspect their own rows directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (fine for a personal calendar)
- No transactions (recurrence series are written row by row anyway)
- Limited query capabilities (we filter in Python)

Each collection lives in its own worksheet. All cells are text; the
normalizer reads "True"/"False" and numeric strings back.
"""

import json
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from lifeledger.config import get_settings
from lifeledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from lifeledger.models.event import StoreTable
from lifeledger.normalization.dates import parse_calendar_date
from lifeledger.services.storage.interface import (
    DATE_COLUMNS,
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)


EVENTS_COLUMNS = [
    "id",
    "user_id",
    "created_at",
    "type",
    "category",
    "name",
    "event_date",
    "start_time",
    "end_time",
    "is_all_day",
    "location",
    "memo",
    "amount",
    "is_received",
    "relation",
    "is_completed",
    "recurrence_rule",
    "group_id",
    "alarm_minutes",
]

LEDGER_COLUMNS = [
    "id",
    "user_id",
    "created_at",
    "transaction_date",
    "amount",
    "merchant_name",
    "category",
    "sub_category",
    "category_group",
    "memo",
    "raw_text",
]

BANK_COLUMNS = [
    "id",
    "user_id",
    "created_at",
    "transaction_date",
    "amount",
    "transaction_type",
    "sender_name",
    "receiver_name",
    "balance_after",
    "category",
    "sub_category",
    "memo",
    "raw_text",
]

TABLE_COLUMNS: dict[StoreTable, list[str]] = {
    StoreTable.EVENTS: EVENTS_COLUMNS,
    StoreTable.LEDGER: LEDGER_COLUMNS,
    StoreTable.BANK_TRANSACTIONS: BANK_COLUMNS,
}

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

logger = structlog.get_logger(__name__)


def _cell(value: Any) -> str:
    """Render a value as sheet text."""
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value"):  # Enums
        return str(value.value)
    return str(value)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_table_sheet(self, table: StoreTable) -> gspread.Worksheet:
        titles = {
            StoreTable.EVENTS: self._settings.events_sheet_name,
            StoreTable.LEDGER: self._settings.ledger_sheet_name,
            StoreTable.BANK_TRANSACTIONS: self._settings.bank_sheet_name,
        }
        return self.get_worksheet(titles[table], TABLE_COLUMNS[table])

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsRecordStore(RecordStoreInterface):
    """
    Google Sheets implementation of the record store.

    One row per record, columns as listed in TABLE_COLUMNS.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _row_to_values(table: StoreTable, row: dict[str, Any]) -> list[str]:
        return [_cell(row.get(column)) for column in TABLE_COLUMNS[table]]

    @staticmethod
    def _values_to_row(table: StoreTable, values: list[str]) -> dict[str, Any]:
        columns = TABLE_COLUMNS[table]
        padded = list(values) + [""] * (len(columns) - len(values))
        return {column: (padded[i] or None) for i, column in enumerate(columns)}

    async def insert(self, table: StoreTable, row: dict[str, Any]) -> str:
        """Append a row; the sheet has no server-side IDs so we mint one."""
        record_id = str(row.get("id") or uuid4())
        try:
            sheet = self._client.get_table_sheet(table)
            values = self._row_to_values(
                table,
                {**row, "id": record_id, "created_at": datetime.utcnow()},
            )
            sheet.append_row(values, value_input_option="RAW")
            return record_id
        except Exception as e:
            raise StorageError(f"Failed to insert into {table.value}: {e}")

    async def update(self, table: StoreTable, record_id: str, fields: dict[str, Any]) -> bool:
        columns = TABLE_COLUMNS[table]
        try:
            sheet = self._client.get_table_sheet(table)
            all_rows = sheet.get_all_values()

            # Row 1 is the header
            for idx, values in enumerate(all_rows[1:], start=2):
                if values and values[0] == record_id:
                    for column, value in fields.items():
                        if column == "id" or column not in columns:
                            continue
                        sheet.update_cell(idx, columns.index(column) + 1, _cell(value))
                    return True

            raise NotFoundError(f"{table.value} row not found: {record_id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {table.value}: {e}")

    async def delete(self, table: StoreTable, record_id: str) -> bool:
        try:
            sheet = self._client.get_table_sheet(table)
            all_rows = sheet.get_all_values()

            for idx, values in enumerate(all_rows[1:], start=2):
                if values and values[0] == record_id:
                    sheet.delete_rows(idx)
                    return True

            return False
        except Exception as e:
            raise StorageError(f"Failed to delete from {table.value}: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_rows(
        self,
        table: StoreTable,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        date_column = DATE_COLUMNS[table]
        try:
            sheet = self._client.get_table_sheet(table)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list {table.value}: {e}")

        rows = []
        for values in all_rows:
            if not values or not values[0]:  # Skip empty rows
                continue
            row = self._values_to_row(table, values)
            if row.get("user_id") != user_id:
                continue
            row_date = parse_calendar_date(row.get(date_column))
            if row_date is not None:
                if date_from and row_date < date_from:
                    continue
                if date_to and row_date > date_to:
                    continue
            rows.append(row)
        return rows


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, IndexError) as e:
                logger.warning("audit_row_unreadable", error=str(e), event_id=row[0])
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the write that triggered it
            logger.warning("audit_append_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._all_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
