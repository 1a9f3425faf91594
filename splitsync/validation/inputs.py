"""
Input Guards

DESIGN DECISION: Invalid mutation input is not an error in this system.
A blank name or a non-numeric amount turns the mutation into a no-op.
These helpers normalize raw form input and return None for anything
that should be rejected, so callers only need an `is None` check.
"""

import math
from typing import Optional, Union

from splitsync.models.ledger import ExpenseCategory


def clean_text(raw: Optional[str], max_length: int = 100) -> Optional[str]:
    """
    Strip a name/description; None if it is blank or too long.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text or len(text) > max_length:
        return None
    return text


def parse_amount(raw: Union[str, int, float, None]) -> Optional[float]:
    """
    Parse a currency amount from user input.

    Accepts numbers and numeric strings (thousands separators and a
    leading currency symbol are tolerated). Returns None for empty,
    non-numeric, negative, or non-finite input.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip().replace(",", "").lstrip("₹$€£").strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None

    if not math.isfinite(value) or value < 0:
        return None
    return value


def parse_category(
    raw: Union[ExpenseCategory, str, None],
) -> Optional[ExpenseCategory]:
    """Map a category or its (case-insensitive) name to the enum."""
    if raw is None:
        return None
    if isinstance(raw, ExpenseCategory):
        return raw
    text = str(raw).strip().lower()
    for category in ExpenseCategory:
        if category.value.lower() == text or category.name.lower() == text:
            return category
    return None
