# moodgauge/scoring/confidence.py
"""How far a mood score can be trusted."""

import logging
import warnings
from typing import Dict, Mapping, Optional, Set, Tuple

from moodgauge.config.settings import ConfidenceSettings, DecisionSettings
from moodgauge.domain.context import EmotionalContext
from moodgauge.domain.exceptions import AmbiguousContextWarning, ConfigurationError
from moodgauge.domain.models import AMBIGUITY_AREAS, EmotionalIndicators, UncertaintyArea
from moodgauge.utils.numeric import _isnum, _nz, clamp01, max_pairwise_gap

from .models import ConfidenceAssessment

logger = logging.getLogger(__name__)

FACTORS = ("extraction", "coherence", "relationship_completeness", "baseline_consistency")


def coherence(indicators: EmotionalIndicators) -> float:
    """1.0 when all sub-scores agree, falling linearly with the widest gap."""
    return clamp01(1.0 - max_pairwise_gap(indicators.scores().values()))


def relationship_completeness(indicators: EmotionalIndicators, context: Optional[EmotionalContext]) -> float:
    if context is not None and context.relationship is not None:
        return context.relationship.completeness
    reading = indicators.relationship
    if UncertaintyArea.MISSING_RELATIONSHIP_CONTEXT.value in reading.flags:
        return 0.0
    # components measured upstream count as complete
    return 1.0 if reading.components else 0.0


def baseline_consistency(indicators: EmotionalIndicators) -> float:
    """Small deviations from the usual mood are more believable than large ones."""
    deviation = indicators.historical.components.get("deviation")
    if not _isnum(deviation):
        return 0.5
    return clamp01(1.0 - abs(deviation) / 10.0)


def is_mixed_sentiment(indicators: EmotionalIndicators, floor: float) -> bool:
    comps = indicators.sentiment.components
    return min(_nz(comps.get("positive")), _nz(comps.get("negative"))) >= floor


class ConfidenceCalculator:
    """Weighted combination of four reliability factors.

    The coherence factor only ever falls as sub-scores drift apart, so more
    disagreement never yields more confidence. Inputs with two or more
    ambiguity flags are additionally capped.
    """

    def __init__(
        self,
        weights: Optional[Mapping[str, float]] = None,
        settings: Optional[ConfidenceSettings] = None,
        disagreement_threshold: float = 0.5,
    ):
        self.weights = dict(weights or DecisionSettings().confidence_weights)
        missing = set(FACTORS) - set(self.weights)
        if missing:
            raise ConfigurationError(
                f"Confidence weights missing factors: {sorted(missing)}",
                config_field="threshold_config.factor_weights"
            )
        self.settings = settings or ConfidenceSettings()
        self.disagreement_threshold = disagreement_threshold

    def assess(
        self,
        indicators: EmotionalIndicators,
        context: Optional[EmotionalContext] = None,
    ) -> ConfidenceAssessment:
        areas: Set[str] = set(indicators.flags)
        notes = []

        upstream = context.extraction_confidence if context is not None else None
        if upstream is None:
            upstream = self.settings.default_extraction_confidence
            areas.add(UncertaintyArea.MISSING_EXTRACTION_CONFIDENCE.value)

        gap = max_pairwise_gap(indicators.scores().values())
        if gap > self.disagreement_threshold:
            areas.add(UncertaintyArea.SIGNAL_DISAGREEMENT.value)
            notes.append(f"sub-scores disagree by {gap:.2f}")

        if is_mixed_sentiment(indicators, self.settings.mixed_sentiment_floor):
            areas.add(UncertaintyArea.MIXED_SENTIMENT.value)

        factors: Dict[str, float] = {
            "extraction": clamp01(upstream),
            "coherence": coherence(indicators),
            "relationship_completeness": relationship_completeness(indicators, context),
            "baseline_consistency": baseline_consistency(indicators),
        }
        contributors = {name: self.weights[name] * value for name, value in factors.items()}
        confidence = clamp01(sum(contributors.values()))

        ambiguous = sorted(areas & AMBIGUITY_AREAS)
        capped = False
        if len(ambiguous) >= self.settings.ambiguity_cap_flags and confidence > self.settings.ambiguity_cap:
            confidence = self.settings.ambiguity_cap
            capped = True
            notes.append(f"capped at {self.settings.ambiguity_cap:.2f}: {', '.join(ambiguous)}")
        if ambiguous:
            warnings.warn(
                AmbiguousContextWarning(f"Scoring with ambiguous context: {', '.join(ambiguous)}"),
                stacklevel=2,
            )

        result = ConfidenceAssessment(
            confidence=round(confidence, 2),
            uncertainty_areas=sorted(areas),
            factors={k: round(v, 4) for k, v in factors.items()},
            contributors={k: round(v, 4) for k, v in contributors.items()},
            capped=capped,
            notes=notes,
        )
        logger.debug("[confidence] %.2f areas=%s", result.confidence, result.uncertainty_areas)
        return result

    def calculate(
        self,
        indicators: EmotionalIndicators,
        context: Optional[EmotionalContext] = None,
    ) -> Tuple[float, Set[str]]:
        """(confidence, uncertainty_areas)."""
        result = self.assess(indicators, context)
        return result.confidence, set(result.uncertainty_areas)
