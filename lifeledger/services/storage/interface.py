"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the writer and read pipeline decoupled from the backend

The datastore owns three collections (events, ledger, bank_transactions).
Rows are plain dicts keyed by column name; only the normalizer and the
writer know which columns each collection has.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional
from uuid import UUID

from lifeledger.models.audit import AuditEvent
from lifeledger.models.event import StoreTable


# Column holding the calendar date of each collection
DATE_COLUMNS: dict[StoreTable, str] = {
    StoreTable.EVENTS: "event_date",
    StoreTable.LEDGER: "transaction_date",
    StoreTable.BANK_TRANSACTIONS: "transaction_date",
}


class RecordStoreInterface(ABC):
    """
    Abstract interface for the record datastore.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def insert(self, table: StoreTable, row: dict[str, Any]) -> str:
        """
        Insert a row.

        Args:
            table: Target collection
            row: Column values (must include user_id)

        Returns:
            The new row's ID

        Raises:
            StorageError: If insert fails
        """
        pass

    @abstractmethod
    async def update(self, table: StoreTable, record_id: str, fields: dict[str, Any]) -> bool:
        """
        Update columns of an existing row.

        Returns:
            True if updated successfully

        Raises:
            StorageError: If update fails
            NotFoundError: If the row doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, table: StoreTable, record_id: str) -> bool:
        """
        Delete a row by ID.

        Returns:
            True if a row was deleted, False if none matched
        """
        pass

    @abstractmethod
    async def list_rows(
        self,
        table: StoreTable,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """
        List a user's rows, optionally bounded by date (inclusive).

        Args:
            table: Collection to read
            user_id: Owner of the rows
            date_from: Rows on or after this date
            date_to: Rows on or before this date

        Returns:
            Matching rows in storage order
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g. one form submission).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
