"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the remote backend; the in-memory backend serves offline
use and tests.
"""

from family_budget.services.storage.interface import (
    ActivityLogInterface,
    DuplicateError,
    IdentityStoreInterface,
    RecordStoreInterface,
    StorageConnectionError,
    StorageError,
)
from family_budget.services.storage.memory import (
    InMemoryActivityLog,
    InMemoryIdentityStore,
    InMemoryRecordStore,
)
from family_budget.services.storage.google_sheets import (
    GoogleSheetsActivityLog,
    GoogleSheetsClient,
    GoogleSheetsIdentityStore,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Interfaces
    "ActivityLogInterface",
    "IdentityStoreInterface",
    "RecordStoreInterface",
    # Exceptions
    "DuplicateError",
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryActivityLog",
    "InMemoryIdentityStore",
    "InMemoryRecordStore",
    # Google Sheets implementation
    "GoogleSheetsActivityLog",
    "GoogleSheetsClient",
    "GoogleSheetsIdentityStore",
    "GoogleSheetsRecordStore",
]
