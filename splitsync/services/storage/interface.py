"""
Abstract Storage Interface

DESIGN DECISION: The whole Group collection is persisted as ONE blob under
ONE storage key, rewritten after every mutation. Backends therefore only
need to read, write and clear a string; encoding lives here so every
backend produces the same vault format.

This allows us to:
1. Keep the vault on local disk, in Google Sheets, or in memory for tests
2. Move a vault between backends by copying one string
3. Keep ledger logic decoupled from where the vault lives
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from splitsync.models.audit import AuditEvent
from splitsync.models.ledger import Group, deserialize_groups, serialize_groups


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStateError(StorageError):
    """The stored blob exists but cannot be parsed into Groups."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class LedgerRepository(ABC):
    """
    Abstract repository for the Group collection.

    Subclasses implement raw blob access; `load` and `save` are the
    contract the ledger store uses.
    """

    def __init__(self, storage_key: str):
        self._storage_key = storage_key

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @abstractmethod
    def read_blob(self) -> Optional[str]:
        """
        Read the raw blob stored under the storage key.

        Returns:
            The blob, or None if nothing is stored

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write_blob(self, blob: str) -> None:
        """
        Replace the blob stored under the storage key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """
        Remove the blob stored under the storage key.

        Clearing an empty key is not an error.
        """
        pass

    def load(self) -> Optional[list[Group]]:
        """
        Load the persisted Group collection.

        Returns:
            Groups in stored order, or None if nothing is stored

        Raises:
            CorruptStateError: If the stored blob cannot be parsed
            StorageError: If the backend cannot be read
        """
        blob = self.read_blob()
        if blob is None or not blob.strip():
            return None
        try:
            return deserialize_groups(blob)
        except (ValidationError, ValueError) as e:
            raise CorruptStateError(
                f"Stored vault under '{self._storage_key}' is unreadable: {e}"
            ) from e

    def save(self, groups: list[Group]) -> None:
        """Persist the whole Group collection, replacing what was stored."""
        self.write_blob(serialize_groups(groups))


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass

    def get_events_by_group(self, group_id: str) -> list[AuditEvent]:
        """All recorded events for a group, oldest first."""
        events = [
            event for event in self.get_recent_events(limit=10_000)
            if event.group_id == group_id
        ]
        # Newest first -> oldest first; ties keep recording order
        events.reverse()
        events.sort(key=lambda e: e.timestamp)
        return events
