"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a shared backend because:
1. A group can look at the raw vault and audit trail in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

The vault is one row per storage key in the Vault worksheet:
[key, blob, updated_at]. The audit log is append-only rows in the
AuditLog worksheet.

TRADEOFFS:
- A cell holds at most 50,000 characters, which caps the vault size
- No transactions (the whole vault is one cell, so writes are all-or-nothing)
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from splitsync.config import GoogleSheetsSettings, get_settings
from splitsync.models.audit import AuditEvent, AuditEventType, AuditSeverity
from splitsync.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerRepository,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Column mappings for Vault sheet
VAULT_COLUMNS = [
    "key",
    "blob",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "group_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

# Google Sheets per-cell character limit
MAX_CELL_CHARS = 50_000

# Transient API failures (quota, 5xx) are retried; anything else fails fast.
_sheets_retry = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

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

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_vault_sheet(self) -> gspread.Worksheet:
        """Get or create the Vault worksheet."""
        return self._get_or_create_sheet(
            self._settings.vault_sheet_name, VAULT_COLUMNS, rows=100
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsLedgerRepository(LedgerRepository):
    """
    Google Sheets implementation of the ledger repository.

    The blob for a storage key lives in column B of the row whose
    column A holds the key.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        storage_key: str = "pentsplit_vault",
    ):
        super().__init__(storage_key)
        self._client = client or GoogleSheetsClient()

    def _find_row(self, rows: list[list[str]]) -> Optional[int]:
        """1-based sheet row index for the storage key (row 1 is the header)."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == self.storage_key:
                return idx
        return None

    @_sheets_retry
    def _all_rows(self) -> list[list[str]]:
        return self._client.get_vault_sheet().get_all_values()

    def read_blob(self) -> Optional[str]:
        try:
            rows = self._all_rows()
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read vault: {e}") from e

        idx = self._find_row(rows)
        if idx is None:
            return None
        row = rows[idx - 1]
        return row[1] if len(row) > 1 and row[1] else None

    @_sheets_retry
    def _write(self, blob: str) -> None:
        sheet = self._client.get_vault_sheet()
        idx = self._find_row(sheet.get_all_values())
        updated_at = datetime.now(timezone.utc).isoformat()
        if idx is None:
            sheet.append_row(
                [self.storage_key, blob, updated_at],
                value_input_option="RAW",
            )
        else:
            sheet.update_cell(idx, 2, blob)
            sheet.update_cell(idx, 3, updated_at)

    def write_blob(self, blob: str) -> None:
        if len(blob) > MAX_CELL_CHARS:
            raise StorageError(
                f"Vault is {len(blob)} characters; a Google Sheets cell "
                f"holds at most {MAX_CELL_CHARS}"
            )
        try:
            self._write(blob)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write vault: {e}") from e

    @_sheets_retry
    def _delete(self) -> None:
        sheet = self._client.get_vault_sheet()
        idx = self._find_row(sheet.get_all_values())
        if idx is not None:
            sheet.delete_rows(idx)

    def clear(self) -> None:
        try:
            self._delete()
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to clear vault: {e}") from e


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
            group_id=safe_get(6) or None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    @_sheets_retry
    def _append(self, row: list) -> None:
        self._client.get_audit_sheet().append_row(row, value_input_option="RAW")

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append(event.to_sheets_row())
            return True
        except Exception as e:
            # Audit logging must not break the ledger flow
            logger.warning(
                "audit_sheet_append_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            all_rows = self._client.get_audit_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except (ValueError, json.JSONDecodeError):
                    continue  # Skip malformed rows

        # Rows are appended oldest first; ties keep the later row first
        events.reverse()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
