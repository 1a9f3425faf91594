"""AI Agents package."""

from splitsync.agents.insight_agent import (
    NO_EXPENSES_MESSAGE,
    UNAVAILABLE_MESSAGE,
    ExpenseSummary,
    InsightAgent,
    InsightResult,
    build_expense_summary,
    build_prompt,
)

__all__ = [
    "NO_EXPENSES_MESSAGE",
    "UNAVAILABLE_MESSAGE",
    "ExpenseSummary",
    "InsightAgent",
    "InsightResult",
    "build_expense_summary",
    "build_prompt",
]
