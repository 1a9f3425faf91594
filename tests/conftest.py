"""Shared fixtures: in-memory storage and a loaded ledger store."""

import pytest

from splitsync.audit import AuditLogger
from splitsync.ledger import LedgerStore
from splitsync.models.ledger import Expense, ExpenseCategory, Group, Person
from splitsync.services.storage import InMemoryAuditStorage, InMemoryLedgerRepository


@pytest.fixture
def repository():
    return InMemoryLedgerRepository("test_vault")


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def store(repository, audit_storage):
    """A store loaded from empty storage: one default group, Alex and Blake."""
    ledger = LedgerStore(repository, audit_logger=AuditLogger(audit_storage))
    ledger.load()
    return ledger


@pytest.fixture
def alex_blake_group():
    """Alex paid 100, Blake paid 50 (newest first)."""
    return Group(
        id="g1",
        name="Trip",
        people=[
            Person(id="a", name="Alex"),
            Person(id="b", name="Blake"),
        ],
        expenses=[
            Expense(id="e2", description="Taxi", amount=50, paid_by_id="b",
                    category=ExpenseCategory.TRANSPORT),
            Expense(id="e1", description="Dinner", amount=100, paid_by_id="a",
                    category=ExpenseCategory.FOOD),
        ],
    )
