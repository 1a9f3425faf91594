"""
Audit Models for SplitSync

Every ledger mutation and every call to an external collaborator is
recorded as an audit event. This provides:
1. A history of who changed what in a group
2. Debugging information when storage or Gemini misbehave
3. Visibility into silent recoveries (corrupt vault, stale insights)

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Groups
    GROUP_CREATED = "group_created"
    GROUP_DELETED = "group_deleted"
    GROUP_SELECTED = "group_selected"
    HISTORY_RESET = "history_reset"

    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_REMOVED = "expense_removed"

    # People
    PERSON_ADDED = "person_added"
    PERSON_RENAMED = "person_renamed"
    PERSON_REMOVED = "person_removed"

    # Vault
    STATE_LOADED = "state_loaded"
    STATE_RECOVERED = "state_recovered"
    FACTORY_RESET = "factory_reset"
    STORAGE_ERROR = "storage_error"

    # Insights
    INSIGHT_GENERATED = "insight_generated"
    INSIGHT_FAILED = "insight_failed"
    INSIGHT_DISCARDED = "insight_discarded"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'group', 'expense', 'person')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    group_id: Optional[str] = Field(
        default=None,
        description="Group the entity belongs to"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "group_id": self.group_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         group_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.group_id or "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(group_id, expense_id, ...)
        event = AuditEventBuilder.state_recovered(reason)
    """

    @staticmethod
    def group_created(group_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_CREATED,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            description=f"Group created: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def group_deleted(
        group_id: str,
        name: str,
        expense_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_DELETED,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            description=f"Group deleted: {name}",
            details={"name": name, "expense_count": expense_count},
            is_user_action=True,
        )

    @staticmethod
    def group_selected(group_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_SELECTED,
            severity=AuditSeverity.DEBUG,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            description="Active group changed",
            is_user_action=True,
        )

    @staticmethod
    def history_reset(group_id: str, cleared_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            description=f"Expense history cleared ({cleared_count} expenses)",
            details={"cleared_count": cleared_count},
            is_user_action=True,
        )

    @staticmethod
    def expense_added(
        group_id: str,
        expense_id: str,
        description: str,
        amount: float,
        paid_by_id: str,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            group_id=group_id,
            description=f"Expense added: {description} - {amount:.2f}",
            details={
                "amount": amount,
                "paid_by_id": paid_by_id,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_removed(group_id: str, expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REMOVED,
            entity_type="expense",
            entity_id=expense_id,
            group_id=group_id,
            description="Expense removed",
            is_user_action=True,
        )

    @staticmethod
    def person_added(group_id: str, person_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSON_ADDED,
            entity_type="person",
            entity_id=person_id,
            group_id=group_id,
            description=f"Person added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def person_renamed(
        group_id: str,
        person_id: str,
        old_name: str,
        new_name: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSON_RENAMED,
            entity_type="person",
            entity_id=person_id,
            group_id=group_id,
            description=f"Person renamed: {old_name} -> {new_name}",
            details={"old_name": old_name, "new_name": new_name},
            is_user_action=True,
        )

    @staticmethod
    def person_removed(
        group_id: str,
        person_id: str,
        name: str,
        removed_expense_ids: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSON_REMOVED,
            severity=(
                AuditSeverity.WARNING if removed_expense_ids else AuditSeverity.INFO
            ),
            entity_type="person",
            entity_id=person_id,
            group_id=group_id,
            description=(
                f"Person removed: {name} "
                f"({len(removed_expense_ids)} expenses removed with them)"
            ),
            details={
                "name": name,
                "removed_expense_ids": removed_expense_ids,
            },
            is_user_action=True,
        )

    @staticmethod
    def state_loaded(storage_key: str, group_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            entity_type="vault",
            entity_id=storage_key,
            description=f"Vault loaded with {group_count} groups",
            details={"group_count": group_count},
        )

    @staticmethod
    def state_recovered(
        storage_key: str,
        reason: str,
        error_message: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_RECOVERED,
            severity=(
                AuditSeverity.WARNING if error_message else AuditSeverity.INFO
            ),
            entity_type="vault",
            entity_id=storage_key,
            description=f"Vault reinitialized with a default group: {reason}",
            details={"reason": reason},
            error_message=error_message,
        )

    @staticmethod
    def factory_reset(storage_key: str, discarded_groups: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FACTORY_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="vault",
            entity_id=storage_key,
            description=f"Factory reset discarded {discarded_groups} groups",
            details={"discarded_groups": discarded_groups},
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        storage_key: str,
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="vault",
            entity_id=storage_key,
            description=f"Storage {operation} failed",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def insight_generated(group_id: str, expense_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_GENERATED,
            entity_type="insight",
            group_id=group_id,
            description=f"Spending insight generated from {expense_count} expenses",
            details={"expense_count": expense_count},
        )

    @staticmethod
    def insight_failed(group_id: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="insight",
            group_id=group_id,
            description="External service error: gemini",
            details={"service": "gemini"},
            error_message=error_message,
        )

    @staticmethod
    def insight_discarded(
        group_id: str,
        active_group_id: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_DISCARDED,
            severity=AuditSeverity.DEBUG,
            entity_type="insight",
            group_id=group_id,
            description="Insight discarded: its group is no longer active",
            details={"active_group_id": active_group_id},
        )
