"""
Tests for SplitSync models

Test strategy:
1. Unit tests for individual components (models, balances, store)
2. Flow tests with in-memory storage and fake external services
3. No real API calls in tests (use fakes/mocks)
"""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from splitsync.models.ledger import (
    Expense,
    ExpenseCategory,
    Group,
    Person,
    avatar_url_for,
    create_default_group,
    deserialize_groups,
    seed_people,
    serialize_groups,
)
from splitsync.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestLedgerModels:
    """Tests for Person, Expense and Group."""

    def test_person_strips_whitespace(self):
        person = Person(id="1", name="  Alex  ")
        assert person.name == "Alex"

    def test_person_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            Person(id="1", name="   ")

    def test_expense_rejects_negative_amount(self):
        with pytest.raises(ValidationError):
            Expense(description="Test", amount=-1, paid_by_id="1")

    def test_expense_rejects_unknown_category(self):
        with pytest.raises(ValidationError):
            Expense(description="Test", amount=1, paid_by_id="1", category="Gadgets")

    def test_expense_is_immutable(self):
        expense = Expense(description="Test", amount=10, paid_by_id="1")
        with pytest.raises(ValidationError):
            expense.amount = 20

    def test_expense_defaults(self):
        expense = Expense(description="Test", amount=10, paid_by_id="1")
        assert expense.category == ExpenseCategory.OTHER
        assert expense.id
        assert expense.timestamp.tzinfo is not None

    def test_group_person_lookup(self, alex_blake_group):
        assert alex_blake_group.find_person("a").name == "Alex"
        assert alex_blake_group.find_person("zzz") is None
        assert alex_blake_group.person_name("zzz") == "Unknown"
        assert alex_blake_group.person_count == 2

    def test_avatar_url_uses_lowercased_name(self):
        assert avatar_url_for(" Chris ") == "https://picsum.photos/seed/chris/100"


class TestDefaults:
    """Tests for the starter data."""

    def test_seed_people(self):
        people = seed_people()
        assert [p.name for p in people] == ["Alex", "Blake"]
        assert [p.id for p in people] == ["1", "2"]

    def test_seed_people_are_fresh_copies(self):
        first, second = seed_people(), seed_people()
        assert first == second
        assert first[0] is not second[0]

    def test_default_group(self):
        group = create_default_group()
        assert group.name == "Main Squad"
        assert group.id.startswith("default-")
        assert group.expenses == []
        assert len(group.people) == 2


class TestVaultCodec:
    """Tests for the persisted blob format."""

    def test_round_trip_preserves_order_and_values(self, alex_blake_group):
        other = create_default_group()
        groups = [alex_blake_group, other]

        restored = deserialize_groups(serialize_groups(groups))

        assert restored == groups
        assert [g.id for g in restored] == ["g1", other.id]
        assert [e.id for e in restored[0].expenses] == ["e2", "e1"]

    def test_serialized_keys_use_vault_names(self, alex_blake_group):
        data = json.loads(serialize_groups([alex_blake_group]))
        group = data[0]
        assert set(group) == {"id", "name", "people", "expenses", "createdAt"}
        assert set(group["people"][0]) == {"id", "name", "avatar"}
        assert set(group["expenses"][0]) == {
            "id", "description", "amount", "paidById", "date", "category"
        }
        assert group["expenses"][0]["category"] == "Transport"

    def test_loads_browser_vault(self):
        blob = json.dumps([{
            "id": "1712345678901",
            "name": "Flat",
            "people": [
                {"id": "1", "name": "Alex", "avatar": "https://picsum.photos/seed/alex/100"},
            ],
            "expenses": [{
                "id": "1712345679999",
                "description": "Groceries",
                "amount": 420.5,
                "paidById": "1",
                "date": "2024-04-05T10:15:00.000Z",
                "category": "Food",
            }],
            "createdAt": "2024-04-01T09:00:00.000Z",
        }])

        groups = deserialize_groups(blob)

        expense = groups[0].expenses[0]
        assert expense.paid_by_id == "1"
        assert expense.amount == 420.5
        assert expense.timestamp == datetime(2024, 4, 5, 10, 15, tzinfo=timezone.utc)
        assert groups[0].people[0].avatar_url.endswith("/alex/100")

    @pytest.mark.parametrize("person_name,amount", [("", 10), ("Alex", -5)])
    def test_browser_vault_outside_model_rules_is_rejected(self, person_name, amount):
        blob = json.dumps([{
            "id": "1", "name": "Flat", "createdAt": "2024-04-01T09:00:00.000Z",
            "people": [{"id": "1", "name": person_name, "avatar": ""}],
            "expenses": [{
                "id": "9", "description": "Refund", "amount": amount,
                "paidById": "1", "date": "2024-04-05T10:15:00.000Z", "category": "Other",
            }],
        }])
        with pytest.raises(ValidationError):
            deserialize_groups(blob)

    @pytest.mark.parametrize("blob", ["not json", "{}", '[{"id": "x"}]'])
    def test_malformed_blob_raises(self, blob):
        with pytest.raises(ValueError):
            deserialize_groups(blob)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.GROUP_CREATED,
            description="Group created",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.is_user_action is False

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.expense_added(
            group_id="g1",
            expense_id="e1",
            description="Dinner",
            amount=100.0,
            paid_by_id="a",
            category="Food",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "expense_added"
        assert log_dict["group_id"] == "g1"
        assert log_dict["details"]["paid_by_id"] == "a"

    def test_audit_event_to_sheets_row(self):
        event = AuditEventBuilder.group_created("g1", "Trip")
        row = event.to_sheets_row()
        assert len(row) == 11
        assert row[2] == "group_created"
        assert row[6] == "g1"
        assert row[10] == "True"

    def test_person_removed_with_expenses_is_warning(self):
        event = AuditEventBuilder.person_removed("g1", "a", "Alex", ["e1", "e2"])
        assert event.severity == AuditSeverity.WARNING
        assert "2 expenses" in event.description

        quiet = AuditEventBuilder.person_removed("g1", "a", "Alex", [])
        assert quiet.severity == AuditSeverity.INFO


class TestCategories:
    """Tests for the category enum."""

    def test_all_categories_exist(self):
        expected = ["Food", "Transport", "Housing", "Entertainment", "Other"]
        assert [c.value for c in ExpenseCategory] == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
