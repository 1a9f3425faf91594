"""
Main Orchestrator for SplitSync

Ties the components together:
1. Ledger flow (UI action → LedgerStore mutation → vault persisted)
2. Insight flow (group snapshot → Gemini → result applied if still relevant)

DESIGN DECISION: The insight call is the only asynchronous operation.
It reads a snapshot of the group when it starts and never locks the
store. When it finishes, the result is kept only if its group is still
the active one; otherwise it is discarded. A newer request cancels an
older one that is still running.
"""

import asyncio
from typing import Optional

import structlog
from pydantic import ValidationError

from splitsync.agents import InsightAgent, InsightResult
from splitsync.audit import AuditLogger
from splitsync.config import Settings, get_settings
from splitsync.ledger import LedgerStore
from splitsync.models.audit import AuditEventBuilder
from splitsync.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerRepository,
    InMemoryLedgerRepository,
    JsonFileLedgerRepository,
    LedgerRepository,
)


logger = structlog.get_logger(__name__)


class InsightFlow:
    """
    Orchestrates spending-insight requests for the ledger.

    Flow:
    1. Snapshot the requested (or active) group
    2. Ask the insight agent (async, may take seconds)
    3. Apply the result only if that group is still active
    """

    def __init__(
        self,
        store: LedgerStore,
        agent: Optional[InsightAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._agent = agent or InsightAgent()
        self._audit_logger = audit_logger or AuditLogger()
        self._latest: dict[str, InsightResult] = {}
        self._task: Optional[asyncio.Task] = None

    async def generate(self, group_id: Optional[str] = None) -> Optional[InsightResult]:
        """
        Generate insights for a group without applying them.

        Returns None if there is no such group (or no active group).
        """
        group = self._store.get_group(group_id) if group_id else self._store.active_group
        if group is None:
            return None

        # Groups are replaced on mutation, never edited, so this
        # reference stays a consistent snapshot while we wait.
        snapshot = group
        result = await self._agent.generate_insights(
            snapshot.expenses,
            snapshot.people,
            group_id=snapshot.id,
        )

        if result.available:
            self._audit_logger.log(
                AuditEventBuilder.insight_generated(snapshot.id, result.expense_count)
            )
        elif result.error:
            self._audit_logger.log_insight_failed(snapshot.id, result.error)

        return result

    def apply(self, result: InsightResult) -> bool:
        """
        Keep a result if its group is still active.

        Returns False (and drops the result) when the user has moved to
        another group or deleted it in the meantime.
        """
        active_id = self._store.active_group_id
        if result.group_id != active_id:
            self._audit_logger.log(
                AuditEventBuilder.insight_discarded(result.group_id, active_id)
            )
            return False

        self._latest[result.group_id] = result
        return True

    async def _generate_and_apply(self, group_id: Optional[str]) -> Optional[InsightResult]:
        result = await self.generate(group_id)
        if result is not None:
            self.apply(result)
        return result

    def start(self, group_id: Optional[str] = None) -> asyncio.Task:
        """
        Run generate-and-apply as a background task on the running loop.

        Any request still in flight is cancelled first.
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(
            self._generate_and_apply(group_id)
        )
        return self._task

    def cancel(self) -> bool:
        """Cancel the in-flight request, if any. Returns True if one was cancelled."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            return True
        return False

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def latest(self, group_id: Optional[str] = None) -> Optional[InsightResult]:
        """Last applied result for a group (the active one by default)."""
        group_id = group_id or self._store.active_group_id
        if group_id is None:
            return None
        return self._latest.get(group_id)


def create_repository(
    settings: Settings,
    sheets_client: Optional[GoogleSheetsClient] = None,
) -> LedgerRepository:
    """Build the ledger repository selected by the storage settings."""
    storage = settings.storage

    if storage.backend == "memory":
        return InMemoryLedgerRepository(storage.storage_key)
    if storage.backend == "google_sheets":
        return GoogleSheetsLedgerRepository(
            sheets_client or GoogleSheetsClient(),
            storage_key=storage.storage_key,
        )
    return JsonFileLedgerRepository(storage.data_path, storage.storage_key)


def _local_repository(settings: Settings) -> JsonFileLedgerRepository:
    """JSON file vault at the configured location (defaults if storage settings are invalid)."""
    try:
        storage = settings.storage
    except ValidationError:
        return JsonFileLedgerRepository(".splitsync")
    return JsonFileLedgerRepository(storage.data_path, storage.storage_key)


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[LedgerStore, InsightFlow]:
    """
    Factory function to create all application components.

    The store is returned already loaded. If Google Sheets is selected
    but cannot be configured, the local JSON file backend is used instead.

    Returns:
        (ledger_store, insight_flow)
    """
    settings = settings or get_settings()
    app_settings = settings.app

    audit_storage: Optional[AuditStorageInterface] = None
    try:
        if settings.storage.backend == "google_sheets":
            sheets_client = GoogleSheetsClient()
            repository = create_repository(settings, sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        else:
            repository = create_repository(settings)
    except Exception as e:
        # Storage not configured - continue with the local vault
        logger.warning("storage_not_configured", error=str(e), fallback="json_file")
        repository = _local_repository(settings)

    audit_logger = AuditLogger(audit_storage)

    store = LedgerStore(
        repository,
        audit_logger=audit_logger,
        default_group_name=app_settings.default_group_name,
    )
    store.load()

    insight_flow = InsightFlow(
        store,
        agent=InsightAgent(
            window=app_settings.insight_window,
            currency_code=app_settings.currency_code,
        ),
        audit_logger=audit_logger,
    )

    return store, insight_flow
