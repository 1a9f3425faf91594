"""
Tests for the insight agent and the insight flow.

Gemini is replaced by a fake model; no network calls are made.
"""

import asyncio
import json

import pytest

from splitsync.agents import (
    NO_EXPENSES_MESSAGE,
    UNAVAILABLE_MESSAGE,
    InsightAgent,
    build_expense_summary,
    build_prompt,
)
from splitsync.audit import AuditLogger
from splitsync.models.audit import AuditEventType
from splitsync.models.ledger import Expense, Person
from splitsync.orchestrator import InsightFlow


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Records prompts; optionally waits on a gate before answering."""

    def __init__(self, text="**Alex** pays for everything.", error=None, gate=None):
        self.text = text
        self.error = error
        self.gate = gate
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return FakeResponse(self.text)


def make_agent(model, window=50):
    return InsightAgent(model=model, window=window, currency_code="INR")


def numbered_expenses(count, payer="a"):
    # Newest first, like a group's history
    return [
        Expense(id=f"e{i}", description=f"item {i}", amount=i, paid_by_id=payer)
        for i in range(count, 0, -1)
    ]


# =============================================================================
# SUMMARY AND PROMPT
# =============================================================================

class TestExpenseSummary:
    """Tests for what gets sent to the model."""

    def test_window_keeps_most_recent(self):
        expenses = numbered_expenses(60)
        summary = build_expense_summary(expenses, [Person(id="a", name="Alex")], window=50)

        assert len(summary) == 50
        assert summary[0].description == "item 60"
        assert summary[-1].description == "item 11"

    def test_fields(self, alex_blake_group):
        summary = build_expense_summary(alex_blake_group.expenses, alex_blake_group.people)
        assert summary[0].model_dump() == {
            "description": "Taxi",
            "amount": 50.0,
            "paid_by": "Blake",
            "category": "Transport",
        }

    def test_unknown_payer(self):
        expense = Expense(description="Old", amount=5, paid_by_id="gone")
        summary = build_expense_summary([expense], [Person(id="a", name="Alex")])
        assert summary[0].paid_by == "Unknown"

    def test_prompt_mentions_people_currency_and_data(self, alex_blake_group):
        summary = build_expense_summary(alex_blake_group.expenses, alex_blake_group.people)
        prompt = build_prompt(summary, person_count=2, currency_code="INR")

        assert "group of 2 people" in prompt
        assert "INR" in prompt
        assert json.dumps([s.model_dump() for s in summary], ensure_ascii=False) in prompt
        assert "Markdown" in prompt


# =============================================================================
# AGENT
# =============================================================================

class TestInsightAgent:
    """Tests for Gemini calls and their failure handling."""

    def test_returns_model_text(self, alex_blake_group):
        model = FakeModel(text="  Blake should buy dinner next.  ")
        agent = make_agent(model)

        result = asyncio.run(agent.generate_insights(
            alex_blake_group.expenses, alex_blake_group.people, group_id="g1"
        ))

        assert result.available is True
        assert result.text == "Blake should buy dinner next."
        assert result.group_id == "g1"
        assert result.expense_count == 2
        assert len(model.prompts) == 1

    def test_no_expenses_skips_the_call(self, alex_blake_group):
        model = FakeModel()
        result = asyncio.run(make_agent(model).generate_insights([], alex_blake_group.people))

        assert result.text == NO_EXPENSES_MESSAGE
        assert result.available is False
        assert model.prompts == []

    def test_service_error_becomes_placeholder(self, alex_blake_group):
        model = FakeModel(error=RuntimeError("quota exceeded"))

        result = asyncio.run(make_agent(model).generate_insights(
            alex_blake_group.expenses, alex_blake_group.people, group_id="g1"
        ))

        assert result.text == UNAVAILABLE_MESSAGE
        assert result.available is False
        assert "quota exceeded" in result.error

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_response_becomes_placeholder(self, alex_blake_group, text):
        result = asyncio.run(make_agent(FakeModel(text=text)).generate_insights(
            alex_blake_group.expenses, alex_blake_group.people
        ))
        assert result.text == UNAVAILABLE_MESSAGE

    def test_only_window_is_sent(self):
        model = FakeModel()
        people = [Person(id="a", name="Alex")]

        result = asyncio.run(make_agent(model, window=3).generate_insights(
            numbered_expenses(10), people
        ))

        assert result.expense_count == 3
        sent = json.loads(model.prompts[0].split(": ", 1)[1].split("\n", 1)[0])
        assert [item["description"] for item in sent] == ["item 10", "item 9", "item 8"]


# =============================================================================
# FLOW
# =============================================================================

@pytest.fixture
def flow_parts(store, audit_storage):
    def build(model):
        return InsightFlow(
            store,
            agent=make_agent(model),
            audit_logger=AuditLogger(audit_storage),
        )
    return build


class TestInsightFlow:
    """Tests for applying or discarding results."""

    def test_generate_and_apply_for_active_group(self, store, flow_parts, audit_storage):
        gid = store.active_group_id
        store.add_expense(gid, "Dinner", 100, "1", "Food")
        flow = flow_parts(FakeModel(text="Alex is generous."))

        result = asyncio.run(flow.generate())

        assert flow.apply(result) is True
        assert flow.latest().text == "Alex is generous."
        event_types = [e.event_type for e in audit_storage.get_events_by_group(gid)]
        assert AuditEventType.INSIGHT_GENERATED in event_types

    def test_generate_unknown_group_returns_none(self, flow_parts):
        flow = flow_parts(FakeModel())
        assert asyncio.run(flow.generate("nope")) is None

    def test_failure_is_audited(self, store, flow_parts, audit_storage):
        gid = store.active_group_id
        store.add_expense(gid, "Dinner", 100, "1")
        flow = flow_parts(FakeModel(error=RuntimeError("boom")))

        result = asyncio.run(flow.generate())

        assert result.text == UNAVAILABLE_MESSAGE
        failures = [
            e for e in audit_storage.get_events_by_group(gid)
            if e.event_type == AuditEventType.INSIGHT_FAILED
        ]
        assert failures[0].error_message == "boom"

    def test_result_for_inactive_group_is_discarded(self, store, flow_parts):
        first = store.active_group_id
        store.add_expense(first, "Dinner", 100, "1")
        flow = flow_parts(FakeModel())
        result = asyncio.run(flow.generate(first))

        store.create_group("Elsewhere")

        assert flow.apply(result) is False
        assert flow.latest(first) is None

    def test_switching_groups_mid_request_drops_the_result(self, store, flow_parts):
        first = store.active_group_id
        store.add_expense(first, "Dinner", 100, "1")

        async def scenario():
            gate = asyncio.Event()
            flow = flow_parts(FakeModel(gate=gate))
            task = flow.start(first)
            await asyncio.sleep(0)
            assert flow.pending

            second = store.create_group("Elsewhere")
            gate.set()
            result = await task
            return flow, result, second

        flow, result, second = asyncio.run(scenario())

        assert result.group_id == first
        assert flow.latest(first) is None
        assert flow.latest(second.id) is None
        assert not flow.pending

    def test_snapshot_is_taken_at_start(self, store, flow_parts):
        gid = store.active_group_id
        store.add_expense(gid, "Dinner", 100, "1")

        async def scenario():
            gate = asyncio.Event()
            model = FakeModel(gate=gate)
            flow = flow_parts(model)
            task = flow.start(gid)
            await asyncio.sleep(0)
            store.add_expense(gid, "Late", 5, "2")
            gate.set()
            return await task, model

        result, model = asyncio.run(scenario())

        assert result.expense_count == 1
        assert "Late" not in model.prompts[0]

    def test_new_request_cancels_the_previous_one(self, store, flow_parts):
        gid = store.active_group_id
        store.add_expense(gid, "Dinner", 100, "1")

        async def scenario():
            gate = asyncio.Event()
            flow = flow_parts(FakeModel(gate=gate))
            first = flow.start(gid)
            await asyncio.sleep(0)
            second = flow.start(gid)
            gate.set()
            await asyncio.gather(first, second, return_exceptions=True)
            return flow, first, second

        flow, first, second = asyncio.run(scenario())

        assert first.cancelled()
        assert second.result().available is True
        assert flow.latest(gid) is not None

    def test_cancel_without_request(self, flow_parts):
        flow = flow_parts(FakeModel())
        assert flow.cancel() is False
        assert flow.pending is False
