"""
Data Models Package

This package contains all Pydantic models used in SplitSync.
All data flowing through the system must conform to these schemas.
"""

from splitsync.models.ledger import (
    SEED_PEOPLE,
    Balance,
    BalanceStatus,
    Expense,
    ExpenseCategory,
    Group,
    Person,
    Settlement,
    avatar_url_for,
    create_default_group,
    deserialize_groups,
    new_id,
    seed_people,
    serialize_groups,
)
from splitsync.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "SEED_PEOPLE",
    "Balance",
    "BalanceStatus",
    "Expense",
    "ExpenseCategory",
    "Group",
    "Person",
    "Settlement",
    "avatar_url_for",
    "create_default_group",
    "deserialize_groups",
    "new_id",
    "seed_people",
    "serialize_groups",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
