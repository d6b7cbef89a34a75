import pytest

from moodgauge.config.settings import DecisionSettings
from moodgauge.domain.exceptions import (
    InvalidIndicatorRangeError,
    ParameterValidationError,
    UnknownThresholdVersionError,
)
from moodgauge.domain.models import DecisionOutcome, PriorityTier
from moodgauge.scoring.features import FeatureBuilder
from moodgauge.scoring.models import ConfidenceAssessment
from moodgauge.significance import SignificanceAssessment
from moodgauge.validation import (
    AutoConfirmationEngine,
    OutcomeLedger,
    ThresholdRegistry,
    decision_id_for,
    dominant_factors,
    initial_config,
)

APPROVE = DecisionOutcome.AUTO_APPROVE
REVIEW = DecisionOutcome.REVIEW_REQUIRED
REJECT = DecisionOutcome.AUTO_REJECT


@pytest.fixture
def engine():
    return AutoConfirmationEngine()


def test_low_confidence_is_rejected(engine):
    decision = engine.decide("m3", None, 0.40, "low")
    assert decision.outcome is REJECT
    assert decision.reasoning.rule == "confidence_below_reject"
    assert decision.review_priority is None
    assert decision.threshold_version == 1


def test_critical_item_goes_to_review(engine):
    decision = engine.decide("m4", None, 0.80, "critical")
    assert decision.outcome is REVIEW
    assert decision.reasoning.rule == "significance_override"
    assert decision.reasoning.approve_cutoff == 0.90
    assert decision.review_priority is PriorityTier.CRITICAL
    assert decision.significance_tier is PriorityTier.CRITICAL


@pytest.mark.parametrize("confidence,tier,outcome", [
    (0.76, "low", APPROVE),
    (0.75, "low", REVIEW),
    (0.50, "low", REVIEW),
    (0.49, "low", REJECT),
    (0.85, "high", REVIEW),
    (0.86, "high", APPROVE),
    (0.90, "critical", REVIEW),
    (0.91, "critical", APPROVE),
    (0.45, "critical", REJECT),
])
def test_cutoff_boundaries(engine, confidence, tier, outcome):
    assert engine.decide("m", None, confidence, tier).outcome is outcome


def test_forced_review_tiers():
    registry = ThresholdRegistry(initial_config(DecisionSettings(force_review_tiers=("critical",))))
    decision = AutoConfirmationEngine(registry).decide("m", None, 0.99, PriorityTier.CRITICAL)
    assert decision.outcome is REVIEW
    assert decision.reasoning.rule == "forced_review"


def test_same_inputs_same_decision(engine):
    a = engine.decide("m1", None, 0.6, "medium")
    b = engine.decide("m1", None, 0.6, "medium")
    assert a.decision_id == b.decision_id
    assert a.outcome is b.outcome
    assert a.decision_id == decision_id_for("m1", 1, 0.6, PriorityTier.MEDIUM)
    assert decision_id_for("m1", 2, 0.6, PriorityTier.MEDIUM) != a.decision_id


def test_significance_inputs(engine):
    numeric = engine.decide("m", None, 0.6, 8.5)
    assert numeric.significance_tier is PriorityTier.CRITICAL
    assert numeric.significance == pytest.approx(0.85)

    assessed = engine.decide("m", None, 0.6, SignificanceAssessment(score=4.2, tier=PriorityTier.MEDIUM))
    assert assessed.significance == pytest.approx(0.42)

    with pytest.raises(ParameterValidationError):
        engine.decide("m", None, 0.6, "urgent")
    with pytest.raises(InvalidIndicatorRangeError):
        engine.decide("m", None, 0.6, 11.0)


def test_confidence_out_of_range(engine):
    with pytest.raises(InvalidIndicatorRangeError):
        engine.decide("m", None, 1.2, "low")


def test_pinned_version(engine):
    engine.registry.swap(initial_config(DecisionSettings(approve_cutoff=0.65)))
    assert engine.decide("m", None, 0.70, "low").outcome is APPROVE
    pinned = engine.decide("m", None, 0.70, "low", threshold_version=1)
    assert pinned.outcome is REVIEW
    assert pinned.threshold_version == 1
    with pytest.raises(UnknownThresholdVersionError):
        engine.decide("m", None, 0.70, "low", threshold_version=5)


def test_reasoning_cites_dominant_factors(engine):
    assessment = ConfidenceAssessment(
        confidence=0.85,
        uncertainty_areas=[],
        factors={"extraction": 0.95, "coherence": 0.4, "relationship_completeness": 1.0,
                 "baseline_consistency": 0.82},
        contributors={},
    )
    decision = engine.decide("m", None, assessment, "low")
    assert decision.outcome is APPROVE
    assert decision.reasoning.dominant_factors == ("relationship_completeness", "extraction", "baseline_consistency")
    assert decision.reasoning.factor_values["coherence"] == 0.4


def test_indicator_flags_are_noted(engine):
    indicators = FeatureBuilder.from_components({"sentiment": {"positive": 0.6, "negative": 0.0}})
    decision = engine.decide("m", indicators, 0.6, "low")
    assert "flags: missing_baseline, missing_relationship_context" in decision.reasoning.notes


def test_decisions_are_registered_in_the_ledger():
    ledger = OutcomeLedger()
    decision = AutoConfirmationEngine(ledger=ledger).decide("m", None, 0.6, "low")
    assert decision.decision_id in ledger
    assert ledger.get(decision.decision_id) is decision


class TestDominantFactors:
    factors = {"extraction": 0.9, "coherence": 0.3, "relationship_completeness": 0.45,
               "baseline_consistency": 0.6}

    def test_reject_cites_weak_factors(self):
        assert dominant_factors(REJECT, self.factors) == ("coherence", "relationship_completeness")

    def test_review_cites_up_to_three_doubts(self):
        assert dominant_factors(REVIEW, self.factors) == (
            "coherence", "relationship_completeness", "baseline_consistency",
        )

    def test_fallbacks(self):
        assert dominant_factors(APPROVE, {"coherence": 0.5}) == ("coherence",)
        assert dominant_factors(REVIEW, {}) == ("overall_confidence",)
