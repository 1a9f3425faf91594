"""
Core Data Models for SplitSync

These models define the ledger: Groups own People and Expenses,
Balances are derived from them on every read.

DESIGN DECISION: The persisted shape keeps the camelCase keys of the
browser vault (paidById, createdAt, avatar, date) through field aliases.
Python code uses snake_case attributes; only the wire format is camelCase.
A browser vault loads unchanged as long as every name is non-blank and
every amount is non-negative; one that breaks either rule is treated as
corrupt.

DESIGN DECISION: Amounts are floats. Balances are compared against a
small epsilon ("settled") rather than exact zero, so floating-point
drift never shows up as a debt.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
)


def new_id() -> str:
    """Generate a unique identifier for a Group, Person or Expense."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def avatar_url_for(name: str) -> str:
    """Derived placeholder avatar for a person name."""
    return f"https://picsum.photos/seed/{name.strip().lower()}/100"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    Values are the display names stored in the vault.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    HOUSING = "Housing"
    ENTERTAINMENT = "Entertainment"
    OTHER = "Other"


class BalanceStatus(str, Enum):
    """Where a person stands in the group."""
    OWED = "owed"        # paid more than their share
    OWES = "owes"        # paid less than their share
    SETTLED = "settled"  # within epsilon of zero


# =============================================================================
# LEDGER MODELS
# =============================================================================

class _LedgerModel(BaseModel):
    """Shared config: accept both aliases and field names, strip strings."""
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class Person(_LedgerModel):
    """
    A member of a Group.

    Identity is `id`, unique within the owning Group only.
    """

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Identifier, unique within the Group"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    avatar_url: str = Field(
        default="",
        alias="avatar",
        description="Placeholder avatar URL derived from the name"
    )


class Expense(_LedgerModel):
    """
    A single shared expense.

    Immutable once created; the only allowed change is deletion.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Expense identifier"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was spent on"
    )
    amount: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Amount in the group currency"
    )
    paid_by_id: str = Field(
        ...,
        alias="paidById",
        min_length=1,
        description="Person.id of the payer (same Group)"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        alias="date",
        description="When the expense was logged"
    )
    category: ExpenseCategory = Field(
        default=ExpenseCategory.OTHER,
        description="Expense category"
    )


class Group(_LedgerModel):
    """
    An isolated ledger: a set of People and their shared Expenses.

    `people` keeps insertion order. `expenses` is most-recent-first.
    A Group owns its People and Expenses; nothing is shared across Groups.
    """

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Group identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Group name"
    )
    people: list[Person] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    created_at: datetime = Field(
        default_factory=utc_now,
        alias="createdAt",
        description="When the group was created"
    )

    def find_person(self, person_id: str) -> Optional[Person]:
        for person in self.people:
            if person.id == person_id:
                return person
        return None

    def person_name(self, person_id: str, default: str = "Unknown") -> str:
        """Name of a person by id, or `default` if they are not in the group."""
        person = self.find_person(person_id)
        return person.name if person else default

    @property
    def person_count(self) -> int:
        return len(self.people)


class Balance(BaseModel):
    """
    A person's derived position in a Group.

    Recomputed on every read; never persisted.
    Positive net = owed money, negative net = owes money.
    """

    person_id: str
    paid: float = Field(
        ...,
        ge=0,
        description="Total this person paid"
    )
    share: float = Field(
        ...,
        ge=0,
        description="Equal share of the group total"
    )
    net: float = Field(
        ...,
        description="paid - share"
    )


class Settlement(BaseModel):
    """A suggested transfer that moves the group towards settled."""

    from_person_id: str
    to_person_id: str
    amount: float = Field(gt=0)


# =============================================================================
# DEFAULTS
# =============================================================================

# Starter members for every new Group: (id, name)
SEED_PEOPLE: tuple[tuple[str, str], ...] = (
    ("1", "Alex"),
    ("2", "Blake"),
)


def seed_people() -> list[Person]:
    """Fresh copies of the starter members."""
    return [
        Person(id=person_id, name=name, avatar_url=avatar_url_for(name))
        for person_id, name in SEED_PEOPLE
    ]


def create_default_group(name: str = "Main Squad") -> Group:
    """The Group a fresh (or recovered) vault starts with."""
    return Group(
        id=f"default-{new_id()}",
        name=name,
        people=seed_people(),
    )


# =============================================================================
# VAULT CODEC
# =============================================================================

_GROUPS_ADAPTER = TypeAdapter(list[Group])


def serialize_groups(groups: list[Group]) -> str:
    """Serialize the whole Group collection to the persisted JSON blob."""
    return _GROUPS_ADAPTER.dump_json(groups, by_alias=True).decode("utf-8")


def deserialize_groups(blob: str) -> list[Group]:
    """
    Parse a persisted blob back into Groups (order-preserving).

    Raises:
        pydantic.ValidationError: If the blob is not valid JSON or
            does not match the Group schema.
    """
    return _GROUPS_ADAPTER.validate_json(blob)
