"""
SplitSync - Source Package

A shared-expense ledger for small groups: log who paid for what,
see who owes whom.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. Every mutation replaces a whole Group and persists the whole vault
3. Bad input is a no-op, not an exception
4. Corrupt state recovers to a default Group
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SplitSync Team"
