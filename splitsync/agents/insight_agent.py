"""
Spending Insight Agent

Turns a group's recent expenses into a short, friendly prose summary
using Gemini.

BOUNDARIES:
- The agent only READS a snapshot of expenses and people
- It never changes the ledger
- It never raises: any failure (no API key, network, quota, blocked or
  empty response) becomes a static "unavailable" message
- No retries; the user can simply ask again
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field

from splitsync.config import GeminiSettings, get_settings
from splitsync.models.ledger import Expense, Person


UNAVAILABLE_MESSAGE = (
    "Unable to generate insights at this time. Please check back later."
)
NO_EXPENSES_MESSAGE = (
    "No expenses logged yet. Add a few and ask again for spending insights."
)


class ExpenseSummary(BaseModel):
    """What the model is told about one expense."""

    description: str
    amount: float
    paid_by: str
    category: str


class InsightResult(BaseModel):
    """
    Outcome of one insight request.

    `group_id` identifies the group the snapshot was taken from, so a
    result that arrives after the user switched groups can be dropped.
    """

    group_id: str
    text: str
    available: bool = Field(
        description="False when `text` is a placeholder rather than model output"
    )
    expense_count: int = Field(
        default=0,
        ge=0,
        description="How many expenses were sent to the model"
    )
    error: Optional[str] = None
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


def build_expense_summary(
    expenses: list[Expense],
    people: list[Person],
    window: int = 50,
) -> list[ExpenseSummary]:
    """
    Summaries for the `window` most recent expenses.

    Expenses are stored newest first, so this is a prefix of the list.
    Payers no longer in the group are reported as "Unknown".
    """
    names = {person.id: person.name for person in people}
    return [
        ExpenseSummary(
            description=expense.description,
            amount=expense.amount,
            paid_by=names.get(expense.paid_by_id, "Unknown"),
            category=expense.category.value,
        )
        for expense in expenses[:window]
    ]


def build_prompt(
    summary: list[ExpenseSummary],
    person_count: int,
    currency_code: str = "INR",
) -> str:
    """Prompt asking for a concise, friendly spending analysis in Markdown."""
    payload = json.dumps([item.model_dump() for item in summary], ensure_ascii=False)
    return f"""Analyze these shared expenses for a group of {person_count} people. All amounts are in {currency_code}: {payload}

Provide a concise, friendly summary of the spending habits.
Point out:
1. Who has paid the most and who has paid the least?
2. Which category is draining the most money?
3. One practical tip to save money as a group.

Use ONLY the expenses above. Do not invent amounts or people.
Format the response in clean Markdown."""


class InsightAgent:
    """
    AI agent for spending summaries.

    The Gemini model is created on first use so that a missing API key
    only disables insights instead of failing at startup.
    """

    def __init__(
        self,
        model: Optional[Any] = None,
        settings: Optional[GeminiSettings] = None,
        window: Optional[int] = None,
        currency_code: Optional[str] = None,
    ):
        """
        Args:
            model: Anything with an async `generate_content_async(prompt)`.
                   Built from Gemini settings when omitted.
            settings: Gemini settings; loaded from the environment when omitted.
            window: How many recent expenses to send.
            currency_code: Currency named in the prompt.
        """
        self._model = model
        self._settings = settings
        app_settings = get_settings().app if window is None or currency_code is None else None
        self._window = window if window is not None else app_settings.insight_window
        self._currency_code = currency_code or app_settings.currency_code
        self._logger = structlog.get_logger("splitsync.insights")

    def _get_model(self) -> Any:
        """Configure Google Generative AI on first use."""
        if self._model is None:
            settings = self._settings or get_settings().gemini
            genai.configure(api_key=settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=settings.model_name,
                generation_config={
                    "temperature": settings.temperature,
                    "max_output_tokens": settings.max_tokens,
                }
            )
        return self._model

    async def generate_insights(
        self,
        expenses: list[Expense],
        people: list[Person],
        group_id: str = "",
    ) -> InsightResult:
        """
        Summarize spending for a snapshot of a group.

        Returns the model's text, or a placeholder with available=False.
        """
        if not expenses:
            return InsightResult(
                group_id=group_id,
                text=NO_EXPENSES_MESSAGE,
                available=False,
            )

        summary = build_expense_summary(expenses, people, self._window)
        prompt = build_prompt(summary, len(people), self._currency_code)

        try:
            response = await self._get_model().generate_content_async(prompt)
            text = (response.text or "").strip()
            if not text:
                raise ValueError("Empty response from model")
        except Exception as e:
            self._logger.warning(
                "insight_generation_failed",
                group_id=group_id,
                error=str(e),
            )
            return InsightResult(
                group_id=group_id,
                text=UNAVAILABLE_MESSAGE,
                available=False,
                expense_count=len(summary),
                error=str(e),
            )

        return InsightResult(
            group_id=group_id,
            text=text,
            available=True,
            expense_count=len(summary),
        )
