"""Ledger package: the Group store and the balance calculator."""

from splitsync.ledger.balances import (
    DEFAULT_EPSILON,
    balance_status,
    category_totals,
    compute_balances,
    group_total,
    is_settled,
    share_per_person,
    suggest_settlements,
)
from splitsync.ledger.store import LedgerStore

__all__ = [
    "DEFAULT_EPSILON",
    "LedgerStore",
    "balance_status",
    "category_totals",
    "compute_balances",
    "group_total",
    "is_settled",
    "share_per_person",
    "suggest_settlements",
]
