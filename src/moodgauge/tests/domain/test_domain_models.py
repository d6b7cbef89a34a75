from datetime import datetime, timedelta

import pytest

from moodgauge.domain.exceptions import ConfigurationError, InvalidIndicatorRangeError
from moodgauge.domain.models import (
    DecisionOutcome,
    DecisionReasoning,
    FactorKind,
    HumanOutcome,
    MoodScore,
    OutcomeRecord,
    PriorityTier,
    SignalReading,
    ThresholdConfig,
    TimeContext,
    ValidationDecision,
)


def _reasoning():
    return DecisionReasoning(rule="between_cutoffs", approve_cutoff=0.75, reject_cutoff=0.5, tier="low")


def _decision(outcome=DecisionOutcome.AUTO_APPROVE, confidence=0.9, review_priority=None):
    return ValidationDecision(
        decision_id="d1",
        item_id="i1",
        outcome=outcome,
        confidence=confidence,
        significance=0.3,
        significance_tier=PriorityTier.LOW,
        reasoning=_reasoning(),
        threshold_version=1,
        review_priority=review_priority,
    )


class TestSignalReading:
    """Range checks on extractor output."""

    def test_valid_reading_freezes_collections(self):
        reading = SignalReading(FactorKind.SENTIMENT, 0.6, ["positive:happy"], {"positive": 0.4}, {"sparse_text"})
        assert reading.evidence == ("positive:happy",)
        assert reading.flags == frozenset({"sparse_text"})
        assert reading.evidence_count == 1
        with pytest.raises(TypeError):
            reading.components["positive"] = 0.9

    @pytest.mark.parametrize("score", [-0.01, 1.01, None])
    def test_score_outside_unit_interval_raises(self, score):
        with pytest.raises(InvalidIndicatorRangeError):
            SignalReading(FactorKind.SENTIMENT, score)

    def test_unit_components_are_checked(self):
        with pytest.raises(InvalidIndicatorRangeError) as exc_info:
            SignalReading(FactorKind.SENTIMENT, 0.5, components={"positive": 1.2})
        assert exc_info.value.context["field_name"] == "sentiment.positive"

    def test_historical_components_use_wider_ranges(self):
        SignalReading(FactorKind.HISTORICAL, 0.34, components={"baseline": 5.2, "deviation": -1.8})
        with pytest.raises(InvalidIndicatorRangeError):
            SignalReading(FactorKind.HISTORICAL, 0.5, components={"baseline": 10.5})
        with pytest.raises(InvalidIndicatorRangeError):
            SignalReading(FactorKind.HISTORICAL, 0.5, components={"deviation": -11.0})

    def test_to_dict(self):
        d = SignalReading(FactorKind.RELATIONSHIP, 0.75, components={"support": 0.8}).to_dict()
        assert d == {
            "kind": "relationship",
            "score": 0.75,
            "evidence": [],
            "components": {"support": 0.8},
            "flags": [],
        }


class TestMoodScore:
    def test_bounds(self):
        MoodScore(0.0, 0.0)
        MoodScore(10.0, 1.0)
        with pytest.raises(InvalidIndicatorRangeError):
            MoodScore(10.5, 0.5)
        with pytest.raises(InvalidIndicatorRangeError):
            MoodScore(5.0, 1.5)

    def test_to_dict_sorts_uncertainty(self):
        score = MoodScore(4.2, 0.85, ("unsettled",), {"signal_disagreement", "mixed_sentiment"})
        assert score.to_dict()["uncertainty_areas"] == ["mixed_sentiment", "signal_disagreement"]


def test_time_context_hours():
    start = datetime(2024, 3, 1, 10, 0)
    ctx = TimeContext(start, start + timedelta(minutes=15), "p1")
    assert ctx.hours == pytest.approx(0.25)
    assert ctx.to_dict()["participant_id"] == "p1"


def test_priority_tier_rank_orders_most_urgent_first():
    ranks = [t.rank for t in (PriorityTier.CRITICAL, PriorityTier.HIGH, PriorityTier.MEDIUM, PriorityTier.LOW)]
    assert ranks == [0, 1, 2, 3]


class TestValidationDecision:
    def test_review_priority_only_on_review(self):
        _decision(DecisionOutcome.REVIEW_REQUIRED, 0.6, PriorityTier.LOW)
        with pytest.raises(InvalidIndicatorRangeError):
            _decision(DecisionOutcome.AUTO_APPROVE, 0.9, PriorityTier.LOW)

    def test_confidence_range(self):
        with pytest.raises(InvalidIndicatorRangeError):
            _decision(confidence=1.2)

    def test_to_dict_is_plain_data(self):
        d = _decision().to_dict()
        assert d["outcome"] == "auto_approve"
        assert d["significance_tier"] == "low"
        assert d["review_priority"] is None
        assert d["reasoning"]["rule"] == "between_cutoffs"
        assert d["decided_by"] == "engine"


class TestThresholdConfig:
    def test_requires_reject_below_approve(self):
        with pytest.raises(ConfigurationError):
            ThresholdConfig(version=1, approve_cutoff=0.5, reject_cutoff=0.5)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ConfigurationError):
            ThresholdConfig(version=1, approve_cutoff=0.75, reject_cutoff=0.5, factor_weights={"extraction": 0.5})

    def test_approve_cutoff_for_tier(self):
        cfg = ThresholdConfig(
            version=1, approve_cutoff=0.75, reject_cutoff=0.5,
            significance_adjustments={"critical": 0.90, "high": 0.85},
        )
        assert cfg.approve_cutoff_for(PriorityTier.CRITICAL) == 0.90
        assert cfg.approve_cutoff_for(PriorityTier.HIGH) == 0.85
        assert cfg.approve_cutoff_for(PriorityTier.MEDIUM) == 0.75
        assert cfg.approve_cutoff_for(PriorityTier.LOW) == 0.75

    def test_adjustment_never_lowers_the_bar(self):
        cfg = ThresholdConfig(version=1, approve_cutoff=0.8, reject_cutoff=0.5, significance_adjustments={"high": 0.7})
        assert cfg.approve_cutoff_for(PriorityTier.HIGH) == 0.8

    def test_is_immutable(self):
        cfg = ThresholdConfig(version=1, approve_cutoff=0.75, reject_cutoff=0.5)
        with pytest.raises(AttributeError):
            cfg.approve_cutoff = 0.6
        with pytest.raises(TypeError):
            cfg.significance_adjustments["low"] = 0.9

    def test_forces_review(self):
        cfg = ThresholdConfig(version=1, approve_cutoff=0.75, reject_cutoff=0.5, force_review_tiers=["critical"])
        assert cfg.forces_review(PriorityTier.CRITICAL)
        assert not cfg.forces_review(PriorityTier.LOW)


class TestOutcomeRecord:
    @pytest.mark.parametrize("outcome, human, agrees", [
        (DecisionOutcome.AUTO_APPROVE, HumanOutcome.VALIDATED, True),
        (DecisionOutcome.AUTO_APPROVE, HumanOutcome.REJECTED, False),
        (DecisionOutcome.AUTO_REJECT, HumanOutcome.REJECTED, True),
        (DecisionOutcome.AUTO_REJECT, HumanOutcome.VALIDATED, False),
        (DecisionOutcome.REVIEW_REQUIRED, HumanOutcome.REJECTED, True),
        (DecisionOutcome.REVIEW_REQUIRED, HumanOutcome.VALIDATED, True),
    ])
    def test_agreement(self, outcome, human, agrees):
        decision = _decision(outcome, 0.6)
        record = OutcomeRecord(decision, human, datetime(2024, 3, 1), "d1:human")
        assert record.agrees is agrees
