"""
Storage Services Package

Provides the repository contract for the ledger vault and concrete
backends: in-memory, local JSON file, and Google Sheets.
"""

from splitsync.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptStateError,
    LedgerRepository,
    StorageError,
)
from splitsync.services.storage.local import (
    InMemoryAuditStorage,
    InMemoryLedgerRepository,
    JsonFileLedgerRepository,
)
from splitsync.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerRepository,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerRepository",
    # Exceptions
    "ConnectionError",
    "CorruptStateError",
    "StorageError",
    # Local implementations
    "InMemoryAuditStorage",
    "InMemoryLedgerRepository",
    "JsonFileLedgerRepository",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerRepository",
]
