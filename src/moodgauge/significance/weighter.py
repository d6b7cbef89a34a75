"""Emotional significance: how much an item deserves scarce reviewer attention."""

import logging
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Union

from moodgauge.config.settings import SignificanceSettings
from moodgauge.domain.context import EmotionalContext
from moodgauge.domain.models import MoodDelta, PriorityTier
from moodgauge.utils.numeric import clamp01, _nz

logger = logging.getLogger(__name__)

# representative scores used when a caller only knows the tier
TIER_SCORES = {
    PriorityTier.CRITICAL: 9.0,
    PriorityTier.HIGH: 7.0,
    PriorityTier.MEDIUM: 5.0,
    PriorityTier.LOW: 2.0,
}


@dataclass
class SignificanceAssessment:
    score: float                                   # 0..10
    tier: PriorityTier
    factors: Dict[str, float] = field(default_factory=dict)
    dominant: Tuple[str, ...] = ()

    @property
    def normalised(self) -> float:
        return round(self.score / 10.0, 3)

    @classmethod
    def from_tier(cls, tier: Union[PriorityTier, str]) -> "SignificanceAssessment":
        tier = PriorityTier(tier) if isinstance(tier, str) else tier
        return cls(score=TIER_SCORES[tier], tier=tier)

    def as_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["tier"] = self.tier.value
        return d


def novelty(descriptors: Sequence[str], seen: Iterable[str]) -> float:
    """1 - Jaccard overlap between this item's descriptors and those seen before."""
    current, previous = set(descriptors), set(seen)
    if not previous:
        return 1.0
    union = current | previous
    if not union:
        return 0.0
    return 1.0 - len(current & previous) / len(union)


class SignificanceWeighter:
    """
    significance = 10 * (w_m * magnitude + w_r * relationship + w_n * novelty + w_u * urgency)

    The tier orders the review queue; it never approves or rejects anything.
    """

    def __init__(self, settings: Optional[SignificanceSettings] = None):
        self.settings = settings or SignificanceSettings()

    def tier_for(self, score: float) -> PriorityTier:
        cuts = self.settings.tier_cutoffs
        if score >= cuts["critical"]:
            return PriorityTier.CRITICAL
        if score >= cuts["high"]:
            return PriorityTier.HIGH
        if score >= cuts["medium"]:
            return PriorityTier.MEDIUM
        return PriorityTier.LOW

    def assess(
        self,
        *,
        magnitude: float = 0.0,
        relationship_importance: Optional[float] = None,
        novelty: float = 0.0,
        urgent: bool = False,
    ) -> SignificanceAssessment:
        factors = {
            "magnitude": clamp01(abs(_nz(magnitude)) / self.settings.magnitude_scale),
            "relationship": clamp01(_nz(relationship_importance, 0.5)),
            "novelty": clamp01(_nz(novelty)),
            "urgency": 1.0 if urgent else 0.0,
        }
        weights = self.settings.factor_weights
        contributions = {k: weights[k] * v for k, v in factors.items()}
        score = round(10.0 * sum(contributions.values()), 2)

        tier = self.tier_for(score)
        if urgent and tier.rank > PriorityTier.HIGH.rank:
            tier = PriorityTier.HIGH

        dominant = tuple(k for k, v in sorted(contributions.items(), key=lambda t: -t[1]) if v > 0)[:2]
        return SignificanceAssessment(
            score=score,
            tier=tier,
            factors={k: round(v, 4) for k, v in factors.items()},
            dominant=dominant,
        )

    def assess_item(
        self,
        context: Optional[EmotionalContext],
        *,
        delta: Optional[MoodDelta] = None,
        descriptors: Sequence[str] = (),
        seen_descriptors: Iterable[str] = (),
    ) -> SignificanceAssessment:
        """Significance of one scored item given its delta (if any) and the participant's history."""
        importance = None
        urgent = False
        if context is not None:
            urgent = context.urgent
            rel = context.relationship
            if rel is not None:
                importance = rel.importance if rel.importance is not None else rel.closeness
            vulnerability = context.participant.vulnerability
            if vulnerability:
                importance = clamp01(_nz(importance, 0.5) + 0.5 * vulnerability)

        result = self.assess(
            magnitude=delta.magnitude if delta is not None else 0.0,
            relationship_importance=importance,
            novelty=novelty(descriptors, seen_descriptors),
            urgent=urgent,
        )
        logger.debug("[significance] %.2f -> %s (%s)", result.score, result.tier.value, ", ".join(result.dominant))
        return result
