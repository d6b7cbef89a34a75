"""Three-way routing of scored items: auto-approve, human review or auto-reject."""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Mapping, Optional, Tuple, Union

from moodgauge.domain.exceptions import ParameterValidationError
from moodgauge.domain.models import (
    DecisionOutcome,
    DecisionReasoning,
    EmotionalIndicators,
    PriorityTier,
    ValidationDecision,
    _require_range,
)
from moodgauge.scoring.models import ConfidenceAssessment
from moodgauge.significance.weighter import SignificanceAssessment, SignificanceWeighter

from .ledger import OutcomeLedger
from .thresholds import ThresholdRegistry

logger = logging.getLogger(__name__)

ConfidenceInput = Union[ConfidenceAssessment, float]
SignificanceInput = Union[SignificanceAssessment, PriorityTier, str, float]

STRONG_FACTOR = 0.8
WEAK_FACTOR = 0.5
REVIEW_FACTOR = 0.7
MAX_CITED = 3


def decision_id_for(item_id: str, version: int, confidence: float, tier: PriorityTier) -> str:
    """Stable id: the same item decided under the same inputs gets the same id."""
    key = f"{item_id}|v{version}|{confidence:.4f}|{tier.value}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]


def dominant_factors(outcome: DecisionOutcome, factors: Mapping[str, float]) -> Tuple[str, ...]:
    """The confidence factors that explain the outcome, most telling first."""
    if not factors:
        return ("overall_confidence",)
    ranked_high = sorted(factors, key=lambda k: (-factors[k], k))
    ranked_low = sorted(factors, key=lambda k: (factors[k], k))

    if outcome is DecisionOutcome.AUTO_APPROVE:
        picked = [k for k in ranked_high if factors[k] > STRONG_FACTOR] or ranked_high[:1]
    elif outcome is DecisionOutcome.AUTO_REJECT:
        picked = [k for k in ranked_low if factors[k] < WEAK_FACTOR] or ranked_low[:1]
    else:
        picked = [k for k in ranked_low if factors[k] < REVIEW_FACTOR][:MAX_CITED] or ranked_low[:1]
    return tuple(picked)


class AutoConfirmationEngine:
    """
    scored -> auto_approve | review_required | auto_reject

        confidence >  approve cutoff (raised for high/critical tiers) -> auto_approve
        confidence <  reject cutoff                                    -> auto_reject
        otherwise                                                      -> review_required

    Both comparisons are strict, so a confidence sitting exactly on a cutoff
    goes to a human. Tiers listed in force_review_tiers always go to a human.
    """

    def __init__(
        self,
        registry: Optional[ThresholdRegistry] = None,
        ledger: Optional[OutcomeLedger] = None,
        weighter: Optional[SignificanceWeighter] = None,
    ):
        self.registry = registry or ThresholdRegistry()
        self.ledger = ledger
        self.weighter = weighter or SignificanceWeighter()

    def _significance(self, significance: SignificanceInput) -> SignificanceAssessment:
        if isinstance(significance, SignificanceAssessment):
            return significance
        if isinstance(significance, (PriorityTier, str)):
            try:
                return SignificanceAssessment.from_tier(significance)
            except ValueError:
                raise ParameterValidationError(
                    f"Unknown significance tier: {significance!r}",
                    parameter_name="significance",
                    expected_type="PriorityTier",
                ) from None
        _require_range("significance", significance, 0.0, 10.0)
        return SignificanceAssessment(score=float(significance), tier=self.weighter.tier_for(significance))

    def decide(
        self,
        item_id: str,
        indicators: Optional[EmotionalIndicators],
        confidence: ConfidenceInput,
        significance: SignificanceInput,
        threshold_version: Optional[int] = None,
    ) -> ValidationDecision:
        config = self.registry.get(threshold_version)

        if isinstance(confidence, ConfidenceAssessment):
            value, factors = confidence.confidence, dict(confidence.factors)
        else:
            value, factors = confidence, {}
        _require_range("confidence", value, 0.0, 1.0)

        sig = self._significance(significance)
        tier = sig.tier
        approve_cut = config.approve_cutoff_for(tier)
        reject_cut = config.reject_cutoff
        notes = []

        if config.forces_review(tier):
            outcome, rule = DecisionOutcome.REVIEW_REQUIRED, "forced_review"
            notes.append(f"{tier.value} items always go to review")
        elif value > approve_cut:
            outcome, rule = DecisionOutcome.AUTO_APPROVE, "confidence_above_approve"
        elif value < reject_cut:
            outcome, rule = DecisionOutcome.AUTO_REJECT, "confidence_below_reject"
        else:
            outcome, rule = DecisionOutcome.REVIEW_REQUIRED, "between_cutoffs"
            if value > config.approve_cutoff:
                rule = "significance_override"
                notes.append(f"{tier.value} significance raises approve cutoff to {approve_cut:.2f}")

        if indicators is not None and indicators.flags:
            notes.append("flags: " + ", ".join(sorted(indicators.flags)))

        reasoning = DecisionReasoning(
            rule=rule,
            approve_cutoff=approve_cut,
            reject_cutoff=reject_cut,
            tier=tier.value,
            dominant_factors=dominant_factors(outcome, factors),
            factor_values=factors,
            notes=tuple(notes),
        )
        decision = ValidationDecision(
            decision_id=decision_id_for(item_id, config.version, value, tier),
            item_id=item_id,
            outcome=outcome,
            confidence=value,
            significance=sig.normalised,
            significance_tier=tier,
            reasoning=reasoning,
            threshold_version=config.version,
            review_priority=tier if outcome is DecisionOutcome.REVIEW_REQUIRED else None,
            decided_at=datetime.now(timezone.utc),
        )
        if self.ledger is not None:
            self.ledger.register(decision)

        logger.debug(
            "[decide] %s -> %s (conf=%.2f, tier=%s, v%d, %s)",
            item_id, outcome.value, value, tier.value, config.version, rule,
        )
        return decision
