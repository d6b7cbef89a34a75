import pytest

from moodgauge.domain.exceptions import ParameterValidationError, UnknownDecisionError
from moodgauge.domain.models import DecisionOutcome, HumanOutcome
from moodgauge.validation import OutcomeLedger


@pytest.fixture
def ledger():
    return OutcomeLedger()


def test_unknown_decision(ledger):
    with pytest.raises(UnknownDecisionError):
        ledger.record("nope", "validated")
    with pytest.raises(UnknownDecisionError):
        ledger.get("nope")


def test_verdict_supersedes_without_editing(ledger, make_decision):
    original = make_decision(outcome=DecisionOutcome.REVIEW_REQUIRED)
    ledger.register(original)
    record = ledger.record(original.decision_id, "rejected", human_mood=3.0, engine_mood=4.2)

    assert record.decision is original
    assert record.human_outcome is HumanOutcome.REJECTED
    assert record.superseding_decision_id == f"{original.decision_id}:human"
    assert ledger.get(original.decision_id) is original

    superseding = ledger.get(record.superseding_decision_id)
    assert superseding.outcome is DecisionOutcome.AUTO_REJECT
    assert superseding.decided_by == "human"
    assert superseding.supersedes == original.decision_id
    assert superseding.review_priority is None


def test_repeat_verdicts_get_their_own_ids(ledger, make_decision):
    original = make_decision()
    ledger.register(original)
    first = ledger.record(original.decision_id, HumanOutcome.VALIDATED)
    second = ledger.record(original.decision_id, HumanOutcome.REJECTED)
    assert first.superseding_decision_id != second.superseding_decision_id
    assert second.superseding_decision_id.endswith(":human2")
    assert len(ledger.outcomes()) == 2


def test_invalid_outcome_string(ledger, make_decision):
    original = make_decision()
    ledger.register(original)
    with pytest.raises(ParameterValidationError):
        ledger.record(original.decision_id, "maybe")


@pytest.mark.parametrize("outcome,human,agrees", [
    (DecisionOutcome.AUTO_APPROVE, "validated", True),
    (DecisionOutcome.AUTO_APPROVE, "rejected", False),
    (DecisionOutcome.AUTO_REJECT, "rejected", True),
    (DecisionOutcome.AUTO_REJECT, "validated", False),
    (DecisionOutcome.REVIEW_REQUIRED, "rejected", True),
])
def test_agreement(ledger, make_decision, outcome, human, agrees):
    decision = make_decision(outcome=outcome, confidence=0.6)
    ledger.register(decision)
    assert ledger.record(decision.decision_id, human).agrees is agrees


def test_overturned_decisions_are_logged(ledger, make_decision, caplog):
    decision = make_decision(outcome=DecisionOutcome.AUTO_APPROVE, confidence=0.9)
    ledger.register(decision)
    with caplog.at_level("INFO", logger="moodgauge.validation.ledger"):
        ledger.record(decision.decision_id, "rejected")
    assert "overturned" in caplog.text


def test_pending_and_consumed(ledger, make_decision):
    decisions = [make_decision() for _ in range(3)]
    for d in decisions:
        ledger.register(d)
    records = [ledger.record(d.decision_id, "validated") for d in decisions]
    assert len(ledger.pending_outcomes()) == 3
    ledger.mark_consumed(records[:2])
    assert ledger.pending_outcomes() == [records[2]]
    assert len(ledger.outcomes()) == 3
