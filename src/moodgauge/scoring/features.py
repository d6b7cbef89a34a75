"""Assemble EmotionalIndicators from text or from raw component mappings."""

import logging
from typing import Mapping, Optional, Sequence

from moodgauge.domain.models import EmotionalIndicators, FactorKind, UncertaintyArea
from moodgauge.domain.context import EmotionalContext
from moodgauge.domain.exceptions import ParameterValidationError
from moodgauge.extraction import EXTRACTORS, reading_from_components
from moodgauge.extraction.extractors import DEFAULT_RATE

logger = logging.getLogger(__name__)

# flag raised when a caller omits a whole factor
_MISSING_FLAGS = {
    FactorKind.RELATIONSHIP: UncertaintyArea.MISSING_RELATIONSHIP_CONTEXT.value,
    FactorKind.HISTORICAL: UncertaintyArea.MISSING_BASELINE.value,
}


class FeatureBuilder:
    """Runs every extractor over one item."""

    def __init__(self, saturation_rate: float = DEFAULT_RATE):
        self.saturation_rate = saturation_rate

    def build(self, text: str, context: Optional[EmotionalContext] = None) -> EmotionalIndicators:
        readings = {
            kind.value: extractor(text, context, rate=self.saturation_rate)
            for kind, extractor in EXTRACTORS.items()
        }
        indicators = EmotionalIndicators(**readings)
        logger.debug(
            "[features] %s",
            ", ".join(f"{k}={v:.3f}" for k, v in indicators.scores().items()),
        )
        return indicators

    @staticmethod
    def from_components(
        components: Mapping[str, Mapping[str, float]],
        evidence: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> EmotionalIndicators:
        """
        Indicators from already-measured components, e.g.
        ``{"sentiment": {"positive": 0.3, "negative": 0.6, "neutral": 0.1}, ...}``.

        Omitted factors fall back to neutral components; omitting relationship
        or historical data is flagged like missing context.
        """
        unknown = set(components) - {k.value for k in FactorKind}
        if unknown:
            raise ParameterValidationError(
                f"Unknown indicator factors: {sorted(unknown)}",
                parameter_name="components",
            ).add_suggestion(f"Use any of: {', '.join(k.value for k in FactorKind)}")

        evidence = evidence or {}
        readings = {}
        for kind in FactorKind:
            comps = components.get(kind.value)
            flags = []
            if comps is None:
                comps = {}
                if kind in _MISSING_FLAGS:
                    flags.append(_MISSING_FLAGS[kind])
            readings[kind.value] = reading_from_components(
                kind, comps, evidence.get(kind.value, ()), flags
            )
        return EmotionalIndicators(**readings)
