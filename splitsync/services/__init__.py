"""Services package."""

from splitsync.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    CorruptStateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerRepository,
    InMemoryAuditStorage,
    InMemoryLedgerRepository,
    JsonFileLedgerRepository,
    LedgerRepository,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "CorruptStateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerRepository",
    "InMemoryAuditStorage",
    "InMemoryLedgerRepository",
    "JsonFileLedgerRepository",
    "LedgerRepository",
    "StorageError",
]
