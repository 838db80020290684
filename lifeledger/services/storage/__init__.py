"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the record
datastore and the audit log. Google Sheets and in-memory backends ship
with the package; both follow the same interface.
"""

from lifeledger.services.storage.interface import (
    DATE_COLUMNS,
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)
from lifeledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStore,
)
from lifeledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStoreInterface",
    "DATE_COLUMNS",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
]
