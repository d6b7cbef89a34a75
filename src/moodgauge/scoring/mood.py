"""Weighted mood score with descriptors."""

import logging
from typing import List, Mapping, Optional, Tuple

from moodgauge.config.settings import ScoringSettings
from moodgauge.domain.exceptions import ConfigurationError
from moodgauge.domain.models import EmotionalIndicators, FactorKind, MoodScore, UncertaintyArea
from moodgauge.utils.numeric import clamp, max_pairwise_gap

from .models import ConfidenceAssessment

logger = logging.getLogger(__name__)

BAND_RULES = [
    ("uplifted", 8.0),
    ("content", 6.5),
    ("balanced", 4.5),
    ("unsettled", 3.0),
]

HIGH_DESCRIPTORS = {
    FactorKind.SENTIMENT: "upbeat",
    FactorKind.PSYCHOLOGICAL: "resilient",
    FactorKind.RELATIONSHIP: "supported",
    FactorKind.CONVERSATIONAL: "engaged",
    FactorKind.HISTORICAL: "above-baseline",
}

LOW_DESCRIPTORS = {
    FactorKind.SENTIMENT: "downcast",
    FactorKind.PSYCHOLOGICAL: "stressed",
    FactorKind.RELATIONSHIP: "disconnected",
    FactorKind.CONVERSATIONAL: "withdrawn",
    FactorKind.HISTORICAL: "below-baseline",
}


def band_descriptor(value: float) -> str:
    for label, thr in BAND_RULES:
        if value >= thr:
            return label
    return "struggling"


class MoodScoreCalculator:
    """score = clamp(0, 10, 10 * sum(weight_k * subscore_k))"""

    def __init__(
        self,
        weights: Optional[Mapping[str, float]] = None,
        settings: Optional[ScoringSettings] = None,
    ):
        self.settings = settings or ScoringSettings()
        self.weights = dict(weights or self.settings.mood_weights)
        missing = {k.value for k in FactorKind} - set(self.weights)
        if missing:
            raise ConfigurationError(
                f"Mood weights missing factors: {sorted(missing)}",
                config_field="scoring.mood_weights"
            )

    def raw_value(self, indicators: EmotionalIndicators) -> float:
        total = sum(self.weights[name] * score for name, score in indicators.scores().items())
        return clamp(10.0 * total, 0.0, 10.0)

    def descriptors(self, value: float, indicators: EmotionalIndicators) -> Tuple[str, ...]:
        """Band label first, then factors that are both far from neutral and well evidenced."""
        picked: List[Tuple[float, str]] = []
        for kind, reading in indicators.readings().items():
            offset = reading.score - 0.5
            if abs(offset) < self.settings.descriptor_magnitude:
                continue
            if reading.evidence_count < self.settings.descriptor_min_evidence:
                continue
            label = HIGH_DESCRIPTORS[kind] if offset > 0 else LOW_DESCRIPTORS[kind]
            picked.append((abs(offset), label))
        picked.sort(key=lambda t: -t[0])

        out = [band_descriptor(value)]
        for _, label in picked:
            if label not in out:
                out.append(label)
        return tuple(out)

    def calculate(
        self,
        indicators: EmotionalIndicators,
        assessment: ConfidenceAssessment,
    ) -> MoodScore:
        value = round(self.raw_value(indicators), 1)
        areas = set(assessment.uncertainty_areas)
        if max_pairwise_gap(indicators.scores().values()) > self.settings.disagreement_threshold:
            areas.add(UncertaintyArea.SIGNAL_DISAGREEMENT.value)

        score = MoodScore(
            value=value,
            confidence=assessment.confidence,
            descriptors=self.descriptors(value, indicators),
            uncertainty_areas=frozenset(areas),
        )
        logger.debug("[mood] %.1f (%s) conf=%.2f", score.value, ", ".join(score.descriptors), score.confidence)
        return score
