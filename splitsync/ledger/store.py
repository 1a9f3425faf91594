"""
Ledger Store

Owns the process-wide ledger state: the ordered Group collection and
which Group is active.

DESIGN DECISION: Whole-object replacement. A mutation never patches a
field in place; it builds a new Group (pydantic `model_copy`) and swaps
it into the collection, then the WHOLE collection is written back
through the repository. There is exactly one writer, and every
mutation finishes before the next starts.

DESIGN DECISION: Rejected input is a no-op. Blank names, bad amounts,
unknown ids and the last-person guard return None and change nothing.
The only exception a mutation can raise is StorageError, when the
backend cannot be written; the in-memory state keeps the mutation.

DESIGN DECISION: A vault that could not be READ is never overwritten. After
a failed read the store runs on an in-memory default Group, and every
write is refused with StorageError until a later `load()` succeeds or
the user asks for `factory_reset()`.

DESIGN DECISION: Removing a Person also removes every Expense they paid
for. That keeps "every expense's payer is in the group" true without a
foreign-key check.
"""

from datetime import datetime
from typing import Optional, Union

from splitsync.audit import AuditLogger
from splitsync.ledger.balances import compute_balances
from splitsync.models.audit import AuditEventBuilder
from splitsync.models.ledger import (
    Balance,
    Expense,
    ExpenseCategory,
    Group,
    Person,
    avatar_url_for,
    create_default_group,
    new_id,
    seed_people,
)
from splitsync.services.storage import (
    CorruptStateError,
    LedgerRepository,
    StorageError,
)
from splitsync.validation import clean_text, parse_amount, parse_category


class LedgerStore:
    """
    CRUD over Groups, People and Expenses with eager persistence.

    Usage:
        store = LedgerStore(JsonFileLedgerRepository(".splitsync"))
        store.load()
        group = store.active_group
        store.add_expense(group.id, "Dinner", "1200", group.people[0].id, "Food")
    """

    def __init__(
        self,
        repository: LedgerRepository,
        audit_logger: Optional[AuditLogger] = None,
        default_group_name: str = "Main Squad",
    ):
        self._repository = repository
        self._audit = audit_logger or AuditLogger()
        self._default_group_name = default_group_name
        self._groups: list[Group] = []
        self._active_group_id: Optional[str] = None
        self._vault_unread = False

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def groups(self) -> list[Group]:
        """Groups in creation order (a copy of the list; Groups are replaced, not edited)."""
        return list(self._groups)

    @property
    def active_group_id(self) -> Optional[str]:
        return self._active_group_id

    @property
    def vault_unread(self) -> bool:
        """True while the stored vault could not be read and must not be overwritten."""
        return self._vault_unread

    @property
    def active_group(self) -> Optional[Group]:
        if self._active_group_id is None:
            return None
        return self.get_group(self._active_group_id)

    def get_group(self, group_id: str) -> Optional[Group]:
        for group in self._groups:
            if group.id == group_id:
                return group
        return None

    def balances(self, group_id: Optional[str] = None) -> list[Balance]:
        """Balances for a group (the active one by default); [] if there is none."""
        group = self.get_group(group_id) if group_id else self.active_group
        if group is None:
            return []
        return compute_balances(group)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load(self) -> list[Group]:
        """
        Initialize state from the repository.

        Missing, empty or corrupt data is replaced by one default Group,
        which is persisted. An unreadable backend also yields a default
        Group, but only in memory: the stored vault is left untouched and
        writes are refused until a later load succeeds. This never raises.
        """
        key = self._repository.storage_key
        error_message = None
        unreadable = False
        try:
            groups = self._repository.load()
        except CorruptStateError as e:
            groups, reason, error_message = None, "stored vault is corrupt", str(e)
        except StorageError as e:
            self._audit.log_storage_error(key, "read", str(e))
            groups, reason, error_message = None, "stored vault is unreadable", str(e)
            unreadable = True
        else:
            reason = "no stored vault" if groups is None else "stored vault is empty"

        self._vault_unread = unreadable
        if groups:
            self._groups = list(groups)
            self._active_group_id = self._groups[0].id
            self._audit.log(AuditEventBuilder.state_loaded(key, len(self._groups)))
            return self.groups

        default = create_default_group(self._default_group_name)
        self._groups = [default]
        self._active_group_id = default.id
        self._audit.log_state_recovered(key, reason, error_message)
        if unreadable:
            return self.groups
        try:
            self._persist()
        except StorageError:
            # Already logged; the app keeps running on in-memory state.
            pass
        return self.groups

    def factory_reset(self) -> Group:
        """
        Discard every Group, clear persisted storage and start over
        with one default Group, which becomes active.
        """
        discarded = len(self._groups)
        key = self._repository.storage_key
        try:
            self._repository.clear()
        except StorageError as e:
            self._audit.log_storage_error(key, "clear", str(e))
            raise

        default = create_default_group(self._default_group_name)
        self._groups = [default]
        self._active_group_id = default.id
        self._vault_unread = False
        self._audit.log(AuditEventBuilder.factory_reset(key, discarded))
        self._persist()
        return default

    # =========================================================================
    # GROUPS
    # =========================================================================

    def select_group(self, group_id: str) -> Optional[Group]:
        """Make an existing Group active; unknown ids are ignored."""
        group = self.get_group(group_id)
        if group is None:
            self._audit.log_rejected("select_group", "unknown group", group_id=group_id)
            return None
        if group_id != self._active_group_id:
            self._active_group_id = group_id
            self._audit.log(AuditEventBuilder.group_selected(group_id))
        return group

    def create_group(self, name: str) -> Optional[Group]:
        """Create a Group with the starter members; it becomes active."""
        clean_name = clean_text(name)
        if clean_name is None:
            self._audit.log_rejected("create_group", "blank or too long name")
            return None

        group = Group(id=new_id(), name=clean_name, people=seed_people())
        self._groups.append(group)
        self._active_group_id = group.id
        self._audit.log(AuditEventBuilder.group_created(group.id, group.name))
        self._persist()
        return group

    def delete_group(self, group_id: str) -> bool:
        """
        Remove a Group and everything in it.

        If it was active, the first remaining Group becomes active
        (or nothing, when none remain).
        """
        group = self.get_group(group_id)
        if group is None:
            self._audit.log_rejected("delete_group", "unknown group", group_id=group_id)
            return False

        self._groups = [g for g in self._groups if g.id != group_id]
        if self._active_group_id == group_id:
            self._active_group_id = self._groups[0].id if self._groups else None

        self._audit.log(AuditEventBuilder.group_deleted(
            group.id, group.name, len(group.expenses)
        ))
        self._persist()
        return True

    def reset_history(self, group_id: str) -> Optional[Group]:
        """Clear a Group's expenses; its People stay."""
        group = self.get_group(group_id)
        if group is None:
            self._audit.log_rejected("reset_history", "unknown group", group_id=group_id)
            return None

        updated = group.model_copy(update={"expenses": []})
        self._replace_group(updated)
        self._audit.log(AuditEventBuilder.history_reset(group_id, len(group.expenses)))
        return updated

    # =========================================================================
    # EXPENSES
    # =========================================================================

    def add_expense(
        self,
        group_id: str,
        description: str,
        amount: Union[str, int, float, None],
        paid_by_id: str,
        category: Union[ExpenseCategory, str] = ExpenseCategory.OTHER,
        timestamp: Optional[datetime] = None,
    ) -> Optional[Group]:
        """
        Log a new expense at the top of the group's history.

        No-op when the description is blank, the amount is empty,
        non-numeric or negative, the category is unknown, the group is
        missing or has no people, or the payer is not in the group.
        """
        group = self.get_group(group_id)
        clean_description = clean_text(description, max_length=200)
        value = parse_amount(amount)
        expense_category = parse_category(category)

        reason = None
        if group is None:
            reason = "unknown group"
        elif clean_description is None:
            reason = "blank description"
        elif value is None:
            reason = "invalid amount"
        elif expense_category is None:
            reason = "unknown category"
        elif group.person_count == 0:
            reason = "group has no people"
        elif group.find_person(paid_by_id) is None:
            reason = "payer is not in the group"
        if reason:
            self._audit.log_rejected("add_expense", reason, group_id=group_id)
            return None

        fields = {
            "id": new_id(),
            "description": clean_description,
            "amount": value,
            "paid_by_id": paid_by_id,
            "category": expense_category,
        }
        if timestamp is not None:
            fields["timestamp"] = timestamp
        expense = Expense(**fields)

        updated = group.model_copy(update={"expenses": [expense, *group.expenses]})
        self._replace_group(updated)
        self._audit.log(AuditEventBuilder.expense_added(
            group_id=group_id,
            expense_id=expense.id,
            description=expense.description,
            amount=expense.amount,
            paid_by_id=paid_by_id,
            category=expense.category.value,
        ))
        return updated

    def remove_expense(self, group_id: str, expense_id: str) -> Optional[Group]:
        """
        Remove an expense. Idempotent: removing an absent id returns the
        group unchanged and writes nothing.
        """
        group = self.get_group(group_id)
        if group is None:
            self._audit.log_rejected("remove_expense", "unknown group", group_id=group_id)
            return None

        remaining = [e for e in group.expenses if e.id != expense_id]
        if len(remaining) == len(group.expenses):
            return group

        updated = group.model_copy(update={"expenses": remaining})
        self._replace_group(updated)
        self._audit.log(AuditEventBuilder.expense_removed(group_id, expense_id))
        return updated

    # =========================================================================
    # PEOPLE
    # =========================================================================

    def add_person(self, group_id: str, name: str) -> Optional[Group]:
        """Append a member with a placeholder avatar derived from their name."""
        group = self.get_group(group_id)
        clean_name = clean_text(name)
        if group is None or clean_name is None:
            self._audit.log_rejected(
                "add_person",
                "unknown group" if group is None else "blank or too long name",
                group_id=group_id,
            )
            return None

        person = Person(id=new_id(), name=clean_name, avatar_url=avatar_url_for(clean_name))
        updated = group.model_copy(update={"people": [*group.people, person]})
        self._replace_group(updated)
        self._audit.log(AuditEventBuilder.person_added(group_id, person.id, person.name))
        return updated

    def rename_person(
        self,
        group_id: str,
        person_id: str,
        new_name: str,
    ) -> Optional[Group]:
        """Change a member's name; their id, avatar and expenses are untouched."""
        group = self.get_group(group_id)
        person = group.find_person(person_id) if group else None
        clean_name = clean_text(new_name)
        if person is None or clean_name is None:
            self._audit.log_rejected(
                "rename_person",
                "unknown person" if person is None else "blank or too long name",
                group_id=group_id,
                person_id=person_id,
            )
            return None

        people = [
            p.model_copy(update={"name": clean_name}) if p.id == person_id else p
            for p in group.people
        ]
        updated = group.model_copy(update={"people": people})
        self._replace_group(updated)
        self._audit.log(AuditEventBuilder.person_renamed(
            group_id, person_id, person.name, clean_name
        ))
        return updated

    def remove_person(self, group_id: str, person_id: str) -> Optional[Group]:
        """
        Remove a member and every expense they paid for.

        Refused when they are the group's last member.
        """
        group = self.get_group(group_id)
        person = group.find_person(person_id) if group else None
        if person is None:
            self._audit.log_rejected(
                "remove_person", "unknown person", group_id=group_id, person_id=person_id
            )
            return None
        if group.person_count <= 1:
            self._audit.log_rejected(
                "remove_person", "last person in group", group_id=group_id, person_id=person_id
            )
            return None

        removed_ids = [e.id for e in group.expenses if e.paid_by_id == person_id]
        updated = group.model_copy(update={
            "people": [p for p in group.people if p.id != person_id],
            "expenses": [e for e in group.expenses if e.paid_by_id != person_id],
        })
        self._replace_group(updated)
        self._audit.log(AuditEventBuilder.person_removed(
            group_id, person_id, person.name, removed_ids
        ))
        return updated

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _replace_group(self, updated: Group) -> None:
        self._groups = [updated if g.id == updated.id else g for g in self._groups]
        self._persist()

    def _persist(self) -> None:
        """Write the whole Group collection back to the repository."""
        if self._vault_unread:
            error = StorageError(
                "Stored vault could not be read; changes are kept in memory only"
            )
            self._audit.log_storage_error(self._repository.storage_key, "write", str(error))
            raise error
        try:
            self._repository.save(self._groups)
        except StorageError as e:
            self._audit.log_storage_error(self._repository.storage_key, "write", str(e))
            raise
