"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged. This provides:
1. A history of changes per group
2. Debugging capability
3. Visibility into silent recoveries and rejected input

The audit logger:
- Is synchronous, like the ledger mutations that call it
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

import logging
from typing import Optional

import structlog

from splitsync.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from splitsync.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """Route stdlib logging (and therefore structlog) to stderr."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, if configured (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("splitsync.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_rejected(self, operation: str, reason: str, **context) -> None:
        """
        Record a guarded no-op (blank name, bad amount, unknown id...).

        Rejections are not audit events; they only reach the local log.
        """
        self._logger.debug(
            "mutation_rejected",
            operation=operation,
            reason=reason,
            **context,
        )

    def log_state_recovered(
        self,
        storage_key: str,
        reason: str,
        error_message: Optional[str] = None,
    ) -> None:
        """Log that the vault was reinitialized to a default group."""
        self.log(AuditEventBuilder.state_recovered(
            storage_key=storage_key,
            reason=reason,
            error_message=error_message,
        ))

    def log_storage_error(
        self,
        storage_key: str,
        operation: str,
        error_message: str,
    ) -> None:
        """Log a failed vault read/write/clear."""
        self.log(AuditEventBuilder.storage_error(
            storage_key=storage_key,
            operation=operation,
            error_message=error_message,
        ))

    def log_insight_failed(self, group_id: str, error_message: str) -> None:
        """Log an external service error from the insight agent."""
        self.log(AuditEventBuilder.insight_failed(
            group_id=group_id,
            error_message=error_message,
        ))
