"""
Local Storage Implementations

- InMemoryLedgerRepository: a dict of storage key -> blob, shared by
  repositories that are given the same dict. Used by tests and by the
  "memory" backend for throwaway sessions.
- JsonFileLedgerRepository: one JSON file per storage key on local disk.
- InMemoryAuditStorage: append-only list of audit events.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from splitsync.models.audit import AuditEvent
from splitsync.services.storage.interface import (
    AuditStorageInterface,
    LedgerRepository,
    StorageError,
)


class InMemoryLedgerRepository(LedgerRepository):
    """Key-value blob storage held in process memory."""

    def __init__(
        self,
        storage_key: str = "pentsplit_vault",
        blobs: Optional[dict[str, str]] = None,
    ):
        super().__init__(storage_key)
        self._blobs = blobs if blobs is not None else {}

    @property
    def blobs(self) -> dict[str, str]:
        return self._blobs

    def read_blob(self) -> Optional[str]:
        return self._blobs.get(self.storage_key)

    def write_blob(self, blob: str) -> None:
        self._blobs[self.storage_key] = blob

    def clear(self) -> None:
        self._blobs.pop(self.storage_key, None)


class JsonFileLedgerRepository(LedgerRepository):
    """
    Vault stored as `<data_dir>/<storage_key>.json`.

    Writes go to a temporary file in the same directory and are moved
    into place with os.replace, so a crash mid-write leaves the previous
    vault intact.
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        storage_key: str = "pentsplit_vault",
    ):
        super().__init__(storage_key)
        self._data_dir = Path(data_dir)

    @property
    def path(self) -> Path:
        return self._data_dir / f"{self.storage_key}.json"

    def read_blob(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read vault {self.path}: {e}") from e

    def write_blob(self, blob: str) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._data_dir,
                prefix=f".{self.storage_key}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(blob)
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write vault {self.path}: {e}") from e

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to clear vault {self.path}: {e}") from e


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
